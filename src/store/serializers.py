"""Value serializers used by the object store.

This module turns values into stored bytes and back for one declared
type. JSON handles structured records, while bytes and text payloads
are stored as-is. Decoding is strict so that a folder holding mixed
content can be filtered by element type.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime
from enum import Enum
import json
import types
from typing import Any, Mapping, Protocol, Union, get_args, get_origin, get_type_hints

from core.constants import JSON_EXTENSION, TEXT_EXTENSION
from core.errors import ShelfSerializationError


class Serializer(Protocol):
    """Encode and decode one declared value type."""

    @property
    def extension(self) -> str:
        """Default file extension for stored items, including the dot."""
        ...

    def encode(self, value: Any) -> bytes:
        """Encode a value into stored bytes."""
        ...

    def decode(self, data: bytes) -> Any:
        """Decode stored bytes into a value."""
        ...


class BytesSerializer:
    """Identity serializer for raw binary payloads."""

    @property
    def extension(self) -> str:
        return ""

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise ShelfSerializationError(
                f"Cannot store {type(value).__name__} as raw bytes. "
                "Pass bytes or choose a JSON serializer."
            )
        return bytes(value)

    def decode(self, data: bytes) -> bytes:
        return data


class TextSerializer:
    """Serializer for plain text payloads."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    @property
    def extension(self) -> str:
        return TEXT_EXTENSION

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, str):
            raise ShelfSerializationError(
                f"Cannot store {type(value).__name__} as text. Pass a str value."
            )
        return value.encode(self._encoding)

    def decode(self, data: bytes) -> str:
        try:
            return data.decode(self._encoding)
        except UnicodeDecodeError as error:
            raise ShelfSerializationError(
                f"Stored bytes are not valid {self._encoding} text: {error.reason}."
            ) from error


class JsonSerializer:
    """UTF-8 JSON serializer with typed decoding.

    Args:
        value_type: Declared type for decoding. ``object`` returns the
            raw JSON payload.
        indent: Optional indentation passed to ``json.dumps``.
        sort_keys: Whether object keys are sorted when encoding.
    """

    def __init__(
        self,
        value_type: Any = object,
        *,
        indent: int | None = None,
        sort_keys: bool = False,
    ) -> None:
        self._value_type = value_type
        self._indent = indent
        self._sort_keys = sort_keys

    @property
    def extension(self) -> str:
        return JSON_EXTENSION

    @property
    def value_type(self) -> Any:
        return self._value_type

    def encode(self, value: Any) -> bytes:
        payload = to_json_payload(value)
        try:
            text = json.dumps(
                payload,
                indent=self._indent,
                sort_keys=self._sort_keys,
                ensure_ascii=False,
            )
        except (TypeError, ValueError) as error:
            raise ShelfSerializationError(f"Failed to encode value as JSON: {error}.") from error
        return text.encode("utf-8")

    def decode(self, data: bytes) -> Any:
        try:
            payload = json.loads(data.decode("utf-8"))
        except UnicodeDecodeError as error:
            raise ShelfSerializationError(
                f"Stored bytes are not UTF-8 JSON: {error.reason}."
            ) from error
        except json.JSONDecodeError as error:
            raise ShelfSerializationError(f"Stored bytes are not valid JSON: {error.msg}.") from error
        return from_json_payload(self._value_type, payload)


def serializer_for(value_type: Any) -> Serializer:
    """Pick the default serializer for a declared value type.

    Args:
        value_type: Declared element or value type.

    Returns:
        Bytes serializer for binary types, text serializer for str,
        JSON serializer otherwise.
    """
    if value_type in (bytes, bytearray, memoryview):
        return BytesSerializer()
    if value_type is str:
        return TextSerializer()
    return JsonSerializer(value_type)


def to_json_payload(value: Any) -> Any:
    """Convert a value into a JSON-safe payload.

    Args:
        value: Dataclass, mapping, sequence, datetime, enum or primitive.

    Returns:
        JSON-safe payload.

    Raises:
        ShelfSerializationError: If a nested value has no JSON form.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: to_json_payload(getattr(value, field.name))
            for field in dataclasses.fields(value)
        }
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return to_json_payload(value.value)
    if isinstance(value, Mapping):
        return {str(key): to_json_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_payload(item) for item in value]
    raise ShelfSerializationError(
        f"Cannot encode {type(value).__name__} as JSON. "
        "Use dataclasses, mappings, sequences, datetimes or primitives."
    )


def from_json_payload(target: Any, payload: Any) -> Any:
    """Convert a JSON payload into the declared target type.

    Args:
        target: Declared type, possibly generic or optional.
        payload: Parsed JSON payload.

    Returns:
        Value of the declared type.

    Raises:
        ShelfSerializationError: If payload does not match the type.
    """
    if target is object or target is Any:
        return payload
    if target is None or target is type(None):
        if payload is None:
            return None
        raise _mismatch(target, payload)
    if target in (list, tuple, dict):
        return _from_generic(target, target, payload)
    origin = get_origin(target)
    if origin is Union or origin is types.UnionType:
        return _from_union(target, payload)
    if origin in (list, tuple, dict) or (origin is not None and isinstance(origin, type)):
        return _from_generic(target, origin, payload)
    if dataclasses.is_dataclass(target) and isinstance(target, type):
        return _from_dataclass(target, payload)
    if isinstance(target, type) and issubclass(target, Enum):
        try:
            return target(payload)
        except ValueError as error:
            raise _mismatch(target, payload) from error
    if target is datetime:
        if not isinstance(payload, str):
            raise _mismatch(target, payload)
        try:
            return datetime.fromisoformat(payload)
        except ValueError as error:
            raise _mismatch(target, payload) from error
    return _from_primitive(target, payload)


def _from_union(target: Any, payload: Any) -> Any:
    for candidate in get_args(target):
        try:
            return from_json_payload(candidate, payload)
        except ShelfSerializationError:
            continue
    raise _mismatch(target, payload)


def _from_generic(target: Any, origin: type, payload: Any) -> Any:
    args = get_args(target)
    if issubclass(origin, Mapping):
        if not isinstance(payload, dict):
            raise _mismatch(target, payload)
        item_type = args[1] if len(args) == 2 else object
        return {key: from_json_payload(item_type, item) for key, item in payload.items()}
    if not isinstance(payload, list):
        raise _mismatch(target, payload)
    if issubclass(origin, tuple):
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(from_json_payload(args[0], item) for item in payload)
        if args and len(args) != len(payload):
            raise _mismatch(target, payload)
        if not args:
            return tuple(payload)
        return tuple(from_json_payload(arg, item) for arg, item in zip(args, payload))
    item_type = args[0] if args else object
    return [from_json_payload(item_type, item) for item in payload]


def _from_dataclass(target: type, payload: Any) -> Any:
    if not isinstance(payload, dict):
        raise _mismatch(target, payload)
    init_fields = [field for field in dataclasses.fields(target) if field.init]
    field_names = {field.name for field in init_fields}
    unknown_keys = sorted(key for key in payload if key not in field_names)
    if unknown_keys:
        raise ShelfSerializationError(
            f"Unexpected keys for {target.__name__}: {', '.join(unknown_keys)}."
        )
    hints = get_type_hints(target)
    kwargs: dict[str, Any] = {}
    for field in init_fields:
        if field.name in payload:
            kwargs[field.name] = from_json_payload(hints.get(field.name, object), payload[field.name])
            continue
        if field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING:
            raise ShelfSerializationError(
                f"Missing required field '{field.name}' for {target.__name__}."
            )
    return target(**kwargs)


def _from_primitive(target: Any, payload: Any) -> Any:
    if target is bool:
        if isinstance(payload, bool):
            return payload
        raise _mismatch(target, payload)
    if target is int:
        if isinstance(payload, int) and not isinstance(payload, bool):
            return payload
        raise _mismatch(target, payload)
    if target is float:
        if isinstance(payload, (int, float)) and not isinstance(payload, bool):
            return float(payload)
        raise _mismatch(target, payload)
    if isinstance(target, type) and isinstance(payload, target):
        return payload
    raise _mismatch(target, payload)


def _mismatch(target: Any, payload: Any) -> ShelfSerializationError:
    target_name = getattr(target, "__name__", repr(target))
    return ShelfSerializationError(
        f"Stored JSON {type(payload).__name__} does not match declared type {target_name}."
    )
