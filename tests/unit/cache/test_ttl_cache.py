"""Unit tests for the TTL cache and its bound cells."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import pytest

from cache.metadata import MetadataRecord
from cache.ttl_cache import TTLCache
from core.config import ShelfConfig
from core.constants import UNBOUNDED_LIFETIME
from store.object_store import ObjectStore
from store.roots import Directory, Root


@dataclass(frozen=True)
class Entry:
    value: str


class _Clock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _FailingStore(ObjectStore):
    """Store whose value writes fail like a full disk."""

    fail_values = False

    def save(self, value: Any, path: str | Path, root: Root | None = None, **kwargs: Any) -> Path:
        if self.fail_values and not str(path).endswith(".metadata.json"):
            raise OSError(28, "No space left on device")
        return super().save(value, path, root, **kwargs)


def _config(tmp_path, strict_cache: bool = False) -> ShelfConfig:
    return replace(
        ShelfConfig.from_env(),
        data_root=tmp_path / "data",
        temp_root=tmp_path / "tmp",
        cache_prefix="shelf/",
        strict_cache=strict_cache,
    )


def _cache(tmp_path, clock: _Clock, strict: bool | None = None) -> TTLCache:
    config = _config(tmp_path)
    return TTLCache(ObjectStore(config), config=config, clock=clock, strict=strict)


def test_first_read_returns_default_and_seeds_store(tmp_path) -> None:
    """A never-written key should read as its default and persist it."""
    clock = _Clock()
    cache = _cache(tmp_path, clock)
    cell = cache.bind("storage1", default=None, value_type=Entry | None)

    value = cell.get()

    store = ObjectStore(_config(tmp_path))
    assert value is None and store.exists("shelf/storage1.json", Directory.APPLICATION_SUPPORT)


def test_set_then_get_returns_written_value(tmp_path) -> None:
    """A fresh key should read back its last written value."""
    clock = _Clock()
    cell = _cache(tmp_path, clock).bind("storage1", value_type=Entry | None)

    cell.set(Entry(value="hello"))

    assert cell.get() == Entry(value="hello")


def test_set_none_reads_back_none(tmp_path) -> None:
    """Writing None should replace a previous value."""
    clock = _Clock()
    cell = _cache(tmp_path, clock).bind("storage1", value_type=Entry | None)
    cell.set(Entry(value="hello"))

    cell.set(None)

    assert cell.get() is None


def test_sequence_values_roundtrip(tmp_path) -> None:
    """Cells should hold typed sequences with an empty default."""
    clock = _Clock()
    cell = _cache(tmp_path, clock).bind("storage2", default=[], value_type=list[Entry])

    initial = cell.get()
    cell.set([Entry(value="one")])
    written = cell.get()
    cell.set([])

    assert initial == [] and written == [Entry(value="one")] and cell.get() == []


def test_value_type_follows_default_when_omitted(tmp_path) -> None:
    """A typed default should make reads decode to that type."""
    clock = _Clock()
    cell = _cache(tmp_path, clock).bind("entry", default=Entry(value="a"))

    cell.set(Entry(value="b"))

    assert cell.get() == Entry(value="b")


def test_tuple_default_reads_back_as_tuple(tmp_path) -> None:
    """Tuple values should keep their type through the JSON file."""
    clock = _Clock()
    cell = _cache(tmp_path, clock).bind("pair", default=(0, 0))

    cell.set((3, 4))

    assert cell.get() == (3, 4)


def test_read_after_lifetime_returns_default(tmp_path) -> None:
    """A read past the lifetime should return the default, not the value."""
    clock = _Clock()
    cell = _cache(tmp_path, clock).bind("lifetimeStorage", lifetime=10.0, value_type=Entry | None)
    cell.set(Entry(value="expiring"))

    clock.advance(10.0 + 0.001)

    assert cell.get() is None


def test_read_before_lifetime_returns_value(tmp_path) -> None:
    """A read inside the lifetime should return the last written value."""
    clock = _Clock()
    cell = _cache(tmp_path, clock).bind("lifetimeStorage", lifetime=10.0, value_type=Entry | None)
    cell.set(Entry(value="fresh"))

    clock.advance(10.0 - 0.001)

    assert cell.get() == Entry(value="fresh")


def test_stale_read_replaces_stored_value_with_default(tmp_path) -> None:
    """After a stale read the store should hold the default."""
    clock = _Clock()
    config = _config(tmp_path)
    store = ObjectStore(config)
    cell = TTLCache(store, config=config, clock=clock).bind(
        "session", default={"user": None}, lifetime=1.0
    )
    cell.set({"user": "alice"})
    clock.advance(5.0)

    cell.get()

    assert store.retrieve(
        "shelf/session.json", Directory.APPLICATION_SUPPORT, value_type=dict
    ) == {"user": None}


def test_unbounded_lifetime_never_expires(tmp_path) -> None:
    """Unbounded keys should keep their value arbitrarily long."""
    clock = _Clock()
    cell = _cache(tmp_path, clock).bind("neverEnding", value_type=Entry | None)
    cell.set(Entry(value="forever"))

    clock.advance(10.0**8)

    assert cell.get() == Entry(value="forever")


def test_write_after_expiry_is_fresh_again(tmp_path) -> None:
    """A new write should restart the lifetime window."""
    clock = _Clock()
    cell = _cache(tmp_path, clock).bind("rolling", lifetime=10.0, value_type=Entry | None)
    cell.set(Entry(value="old"))
    clock.advance(20.0)
    cell.set(Entry(value="new"))

    clock.advance(5.0)

    assert cell.get() == Entry(value="new")


def test_bind_creates_metadata_record(tmp_path) -> None:
    """Binding a new key should persist its metadata record."""
    clock = _Clock(now=50.0)
    cache = _cache(tmp_path, clock)

    cell = cache.bind("fresh-key", lifetime=30.0)

    assert cell.metadata == MetadataRecord(lifetime=30.0, created_at=50.0, updated_at=50.0)


def test_set_updates_only_updated_at(tmp_path) -> None:
    """Value writes should move updated_at and keep created_at."""
    clock = _Clock(now=50.0)
    cell = _cache(tmp_path, clock).bind("key", lifetime=30.0)
    clock.advance(7.0)

    cell.set("value")

    assert cell.metadata == MetadataRecord(lifetime=30.0, created_at=50.0, updated_at=57.0)


def test_rebinding_with_new_lifetime_keeps_timestamps(tmp_path) -> None:
    """A lifetime change should not reset created_at or updated_at."""
    clock = _Clock(now=50.0)
    cache = _cache(tmp_path, clock)
    cache.bind("key", lifetime=30.0).set("value")
    clock.advance(100.0)

    cell = cache.bind("key", lifetime=UNBOUNDED_LIFETIME)

    assert cell.metadata == MetadataRecord(
        lifetime=UNBOUNDED_LIFETIME, created_at=50.0, updated_at=50.0
    ) and cell.get() == "value"


def test_invalidate_drops_value_and_metadata(tmp_path) -> None:
    """Invalidation should make the next read return the default."""
    clock = _Clock()
    cache = _cache(tmp_path, clock)
    cell = cache.bind("storage", lifetime=100.0, value_type=Entry | None)
    cell.set(Entry(value="storage"))

    cache.invalidate("storage")

    assert cell.metadata is None and cell.get() is None


def test_nested_keys_live_under_prefix_folders(tmp_path) -> None:
    """Keys with separators should map to nested cache folders."""
    clock = _Clock()
    config = _config(tmp_path)
    store = ObjectStore(config)
    cell = TTLCache(store, config=config, clock=clock).bind("users/42/profile")

    cell.set({"name": "Ada"})

    assert store.exists("shelf/users/42/profile.json", Directory.APPLICATION_SUPPORT)


def test_lenient_cache_swallows_persist_failures(tmp_path) -> None:
    """Lenient writes should not raise when the store fails."""
    clock = _Clock()
    config = _config(tmp_path)
    store = _FailingStore(config)
    cell = TTLCache(store, config=config, clock=clock).bind("key", default="fallback")
    store.fail_values = True

    cell.set("lost")

    assert cell.get() == "fallback"


def test_failed_write_does_not_touch_metadata(tmp_path) -> None:
    """A value write that fails should leave updated_at alone."""
    clock = _Clock(now=10.0)
    config = _config(tmp_path)
    store = _FailingStore(config)
    cell = TTLCache(store, config=config, clock=clock).bind("key", lifetime=5.0)
    store.fail_values = True
    clock.advance(3.0)

    cell.set("lost")

    assert cell.metadata is not None and cell.metadata.updated_at == 10.0


def test_strict_cache_propagates_persist_failures(tmp_path) -> None:
    """Strict mode should surface IO failures to the caller."""
    clock = _Clock()
    config = _config(tmp_path)
    store = _FailingStore(config)
    cell = TTLCache(store, config=config, clock=clock, strict=True).bind("key")
    store.fail_values = True

    with pytest.raises(OSError):
        cell.set("lost")


def test_strict_mode_follows_config(tmp_path) -> None:
    """Strictness should default to the config flag."""
    config = _config(tmp_path, strict_cache=True)

    cache = TTLCache(ObjectStore(config), config=config)

    assert cache.strict is True
