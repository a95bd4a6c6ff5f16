"""Time-to-live cache over the object store.

This module binds a key to a default value and a lifetime and returns
a cell whose reads transparently fall back to the default once the
stored value has outlived its lifetime. Reads and writes do not fail
the caller unless the cache runs in strict mode.
"""

from __future__ import annotations

import time
from typing import Any, Callable

from cache.metadata import (
    MetadataRecord,
    metadata_path,
    validate_lifetime,
    value_path,
)
from core.config import ShelfConfig
from core.constants import UNBOUNDED_LIFETIME
from core.errors import LocationNotFoundError, ShelfStoreError
from core.logging_config import get_logger
from store.object_store import ObjectStore
from store.roots import Directory, Root
from store.serializers import JsonSerializer

_LOGGER = get_logger(__name__)

Clock = Callable[[], float]


class TTLCache:
    """Factory for store-backed cached cells."""

    def __init__(
        self,
        store: ObjectStore | None = None,
        *,
        config: ShelfConfig | None = None,
        root: Root = Directory.APPLICATION_SUPPORT,
        clock: Clock = time.time,
        strict: bool | None = None,
    ) -> None:
        """Create a cache.

        Args:
            store: Backing object store; built from config when omitted.
            config: Runtime configuration for prefix and strictness.
            root: Storage root holding cached values and metadata.
            clock: Returns current epoch seconds.
            strict: Propagate persist failures; config default when None.
        """
        self._config = config or ShelfConfig.from_env()
        self._store = store or ObjectStore(self._config)
        self._root = root
        self._clock = clock
        self._strict = self._config.strict_cache if strict is None else strict
        self._prefix = self._config.cache_prefix
        self._metadata_codec = JsonSerializer(MetadataRecord)

    @property
    def strict(self) -> bool:
        return self._strict

    def bind(
        self,
        key: str,
        default: Any = None,
        lifetime: float = UNBOUNDED_LIFETIME,
        *,
        value_type: Any = None,
    ) -> "CachedCell":
        """Bind a key to a default value and lifetime.

        Creates the key's metadata record when absent. An existing record
        with a different lifetime gets the new lifetime and keeps its
        timestamps.

        Args:
            key: Cache key; may contain '/' for nested folders.
            default: Value returned when nothing fresh is stored.
            lifetime: Seconds values stay fresh, or UNBOUNDED_LIFETIME.
            value_type: Declared type used to decode stored values; the
                default's type when omitted, or untyped JSON for a None default.

        Returns:
            Readable and writable cell for the key.

        Raises:
            ShelfCacheError: If key or lifetime is invalid.
        """
        lifetime = validate_lifetime(lifetime)
        if value_type is None:
            value_type = object if default is None else type(default)
        cell = CachedCell(self, key, default, lifetime, JsonSerializer(value_type))
        record = self.load_metadata(key)
        if record is None:
            self._write_metadata(key, MetadataRecord.new(lifetime, self._clock()))
        elif record.lifetime != lifetime:
            self._write_metadata(key, record.with_lifetime(lifetime))
        return cell

    def load_metadata(self, key: str) -> MetadataRecord | None:
        """Return the stored metadata record for a key, if readable."""
        try:
            return self._store.retrieve(
                metadata_path(self._prefix, key),
                self._root,
                serializer=self._metadata_codec,
            )
        except LocationNotFoundError:
            return None
        except (OSError, ShelfStoreError) as error:
            _LOGGER.debug("cache_metadata_unreadable", key=key, reason=str(error))
            return None

    def invalidate(self, key: str) -> None:
        """Drop a key's stored value and metadata record."""
        for path in (value_path(self._prefix, key), metadata_path(self._prefix, key)):
            if self._store.exists(path, self._root):
                self._store.remove(path, self._root)
        _LOGGER.debug("cache_invalidated", key=key)

    def _read(self, cell: "CachedCell") -> Any:
        now = self._clock()
        record = self._metadata_for(cell, now)
        if record.is_stale(now):
            _LOGGER.debug("cache_entry_stale", key=cell.key, updated_at=record.updated_at)
            self._replace_value(cell, cell.default)
            return cell.default
        try:
            return self._store.retrieve(
                value_path(self._prefix, cell.key),
                self._root,
                serializer=cell.codec,
            )
        except (OSError, ShelfStoreError):
            self._replace_value(cell, cell.default)
            return cell.default

    def _write(self, cell: "CachedCell", value: Any) -> None:
        if not self._replace_value(cell, value):
            return
        now = self._clock()
        record = self._metadata_for(cell, now)
        self._write_metadata(cell.key, record.touched(now))

    def _metadata_for(self, cell: "CachedCell", now: float) -> MetadataRecord:
        record = self.load_metadata(cell.key)
        if record is None:
            record = MetadataRecord.new(cell.lifetime, now)
            self._write_metadata(cell.key, record)
        return record

    def _replace_value(self, cell: "CachedCell", value: Any) -> bool:
        return self._replace(value_path(self._prefix, cell.key), value, cell.codec, cell.key)

    def _write_metadata(self, key: str, record: MetadataRecord) -> bool:
        return self._replace(metadata_path(self._prefix, key), record, self._metadata_codec, key)

    def _replace(self, path: str, value: Any, codec: JsonSerializer, key: str) -> bool:
        """Overwrite one cache file, honoring strict mode on failure."""
        try:
            if self._store.exists(path, self._root):
                self._store.remove(path, self._root)
            self._store.save(value, path, self._root, serializer=codec)
        except (OSError, ShelfStoreError) as error:
            if self._strict:
                raise
            _LOGGER.debug("cache_persist_failed", key=key, path=path, reason=str(error))
            return False
        return True


class CachedCell:
    """One cached key bound to its default value and lifetime."""

    def __init__(
        self,
        cache: TTLCache,
        key: str,
        default: Any,
        lifetime: float,
        codec: JsonSerializer,
    ) -> None:
        self._cache = cache
        self._key = key
        self._default = default
        self._lifetime = lifetime
        self._codec = codec

    @property
    def key(self) -> str:
        return self._key

    @property
    def default(self) -> Any:
        return self._default

    @property
    def lifetime(self) -> float:
        return self._lifetime

    @property
    def codec(self) -> JsonSerializer:
        return self._codec

    @property
    def metadata(self) -> MetadataRecord | None:
        return self._cache.load_metadata(self._key)

    def get(self) -> Any:
        """Return the stored value, or the default when stale or missing.

        A stale or missing value is replaced on disk by the default.
        """
        return self._cache._read(self)

    def set(self, value: Any) -> None:
        """Store a new value and record the write time."""
        self._cache._write(self, value)

    def invalidate(self) -> None:
        """Drop this key's stored value and metadata."""
        self._cache.invalidate(self._key)

    def __repr__(self) -> str:
        return f"CachedCell(key={self._key!r}, lifetime={self._lifetime!r})"
