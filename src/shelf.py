"""Public SDK surface for Shelf.

This module provides a stable import path for embedding callers.
It re-exports the store, the cache, and their typed models.
"""

from __future__ import annotations

from cache.metadata import MetadataRecord
from cache.ttl_cache import CachedCell, TTLCache
from core.config import ShelfConfig
from core.constants import UNBOUNDED_LIFETIME
from core.errors import (
    InvalidFileNameError,
    LocationExistsError,
    LocationNotFoundError,
    ShelfCacheError,
    ShelfConfigError,
    ShelfError,
    ShelfSerializationError,
    ShelfStoreError,
)
from core.logging_config import configure_logging
from store.object_store import ObjectStore
from store.roots import Directory, Root, SharedContainer
from store.serializers import (
    BytesSerializer,
    JsonSerializer,
    Serializer,
    TextSerializer,
    serializer_for,
)

__all__ = [
    "BytesSerializer",
    "CachedCell",
    "Directory",
    "InvalidFileNameError",
    "JsonSerializer",
    "LocationExistsError",
    "LocationNotFoundError",
    "MetadataRecord",
    "ObjectStore",
    "Root",
    "Serializer",
    "SharedContainer",
    "ShelfCacheError",
    "ShelfConfig",
    "ShelfConfigError",
    "ShelfError",
    "ShelfSerializationError",
    "ShelfStoreError",
    "TTLCache",
    "TextSerializer",
    "UNBOUNDED_LIFETIME",
    "configure_logging",
    "serializer_for",
]
