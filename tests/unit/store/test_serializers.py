"""Unit tests for value serializers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

import pytest

from core.errors import ShelfSerializationError
from store.serializers import (
    BytesSerializer,
    JsonSerializer,
    TextSerializer,
    serializer_for,
)


@dataclass(frozen=True)
class Message:
    title: str
    body: str


class Priority(Enum):
    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True)
class Thread:
    subject: str
    messages: list[Message]
    priority: Priority = Priority.LOW
    opened_at: datetime | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)


def test_json_roundtrips_nested_dataclasses() -> None:
    """Nested dataclasses, enums, datetimes and tuples should decode back."""
    serializer = JsonSerializer(Thread)
    thread = Thread(
        subject="launch",
        messages=[Message(title="Message 1", body="...")],
        priority=Priority.HIGH,
        opened_at=datetime(2024, 3, 17, 12, 0, tzinfo=timezone.utc),
        tags=("a", "b"),
    )

    decoded = serializer.decode(serializer.encode(thread))

    assert decoded == thread


def test_json_uses_field_defaults_for_missing_optional_keys() -> None:
    """Missing keys with defaults should take the dataclass default."""
    serializer = JsonSerializer(Thread)

    decoded = serializer.decode(b'{"subject": "s", "messages": []}')

    assert decoded.priority is Priority.LOW and decoded.tags == ()


def test_json_rejects_missing_required_field() -> None:
    """Records missing required fields should not decode."""
    with pytest.raises(ShelfSerializationError, match="body"):
        JsonSerializer(Message).decode(b'{"title": "only title"}')


def test_json_rejects_unexpected_keys() -> None:
    """Records with unknown keys should not decode as the declared type."""
    with pytest.raises(ShelfSerializationError):
        JsonSerializer(Message).decode(b'{"title": "t", "body": "b", "extra": 1}')


def test_json_rejects_non_json_bytes() -> None:
    """Binary payloads should fail JSON decoding."""
    with pytest.raises(ShelfSerializationError):
        JsonSerializer(Message).decode(b"\x89PNG\r\n\x1a\n")


def test_json_object_type_returns_raw_payload() -> None:
    """Undeclared JSON type should return the parsed payload unchanged."""
    payload = JsonSerializer().decode(b'{"a": [1, 2, null]}')

    assert payload == {"a": [1, 2, None]}


def test_json_bare_tuple_type_decodes_to_tuple() -> None:
    """An unparameterized tuple type should rebuild a tuple from a JSON array."""
    assert JsonSerializer(tuple).decode(b"[1, 2]") == (1, 2)


def test_json_optional_accepts_null() -> None:
    """Optional record types should decode JSON null to None."""
    assert JsonSerializer(Message | None).decode(b"null") is None


def test_json_bool_does_not_pass_as_int() -> None:
    """Strict primitive checks should not coerce booleans to integers."""
    with pytest.raises(ShelfSerializationError):
        JsonSerializer(int).decode(b"true")


def test_json_honors_indent_and_sort_keys() -> None:
    """Encoder options should shape the stored JSON text."""
    serializer = JsonSerializer(Message, indent=2, sort_keys=True)

    text = serializer.encode(Message(title="t", body="b")).decode("utf-8")

    assert text == '{\n  "body": "b",\n  "title": "t"\n}'


def test_json_rejects_unencodable_values() -> None:
    """Values without a JSON form should fail encoding."""
    with pytest.raises(ShelfSerializationError):
        JsonSerializer().encode({"payload": object()})


def test_bytes_serializer_is_identity() -> None:
    """Binary payloads should pass through unchanged."""
    serializer = BytesSerializer()

    assert serializer.decode(serializer.encode(bytearray(b"\x00\x01"))) == b"\x00\x01"


def test_text_serializer_rejects_invalid_utf8() -> None:
    """Text decoding should be strict."""
    with pytest.raises(ShelfSerializationError):
        TextSerializer().decode(b"\xff\xfe\x00")


def test_serializer_for_picks_by_type() -> None:
    """Default serializers should follow the declared type."""
    assert (
        isinstance(serializer_for(bytes), BytesSerializer)
        and isinstance(serializer_for(str), TextSerializer)
        and isinstance(serializer_for(Message), JsonSerializer)
        and serializer_for(Message).extension == ".json"
        and serializer_for(bytes).extension == ""
    )
