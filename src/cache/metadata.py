"""Sidecar metadata records for cached keys.

Each cached key has one metadata record stored next to its value. The
record carries the key's lifetime policy and the timestamps used to
decide whether the stored value is still fresh.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from core.constants import JSON_EXTENSION, METADATA_SUFFIX, UNBOUNDED_LIFETIME
from core.errors import InvalidFileNameError, ShelfCacheError
from store.locations import normalize_relative_path


@dataclass(frozen=True)
class MetadataRecord:
    """Lifetime policy and timestamps for one cached key.

    Attributes:
        lifetime: Seconds a written value stays fresh, or UNBOUNDED_LIFETIME.
        created_at: Epoch seconds when the record was first created.
        updated_at: Epoch seconds of the last value write.
    """

    lifetime: float
    created_at: float
    updated_at: float

    @classmethod
    def new(cls, lifetime: float, now: float) -> "MetadataRecord":
        return cls(lifetime=lifetime, created_at=now, updated_at=now)

    @property
    def unbounded(self) -> bool:
        return self.lifetime == UNBOUNDED_LIFETIME

    def is_stale(self, now: float) -> bool:
        """Return whether the last write is older than the lifetime.

        Args:
            now: Current epoch seconds from the cache clock.

        Returns:
            True when the lifetime is bounded and has elapsed.
        """
        if self.unbounded:
            return False
        return (now - self.updated_at) > self.lifetime

    def touched(self, now: float) -> "MetadataRecord":
        """Return a copy recording a value write at ``now``."""
        return replace(self, updated_at=now)

    def with_lifetime(self, lifetime: float) -> "MetadataRecord":
        """Return a copy with a new lifetime and unchanged timestamps."""
        return replace(self, lifetime=lifetime)


def validate_lifetime(lifetime: float) -> float:
    """Check a lifetime is non-negative or the unbounded sentinel.

    Raises:
        ShelfCacheError: If lifetime is negative and not unbounded.
    """
    if lifetime == UNBOUNDED_LIFETIME or lifetime >= 0:
        return float(lifetime)
    raise ShelfCacheError(
        f"Invalid cache lifetime {lifetime}: use seconds >= 0 or UNBOUNDED_LIFETIME (-1)."
    )


def value_path(prefix: str, key: str) -> str:
    """Relative path of the stored value for a cached key."""
    return prefix + _validated_key(key) + JSON_EXTENSION


def metadata_path(prefix: str, key: str) -> str:
    """Relative path of the metadata record for a cached key."""
    return prefix + _validated_key(key) + METADATA_SUFFIX + JSON_EXTENSION


def _validated_key(key: str) -> str:
    try:
        normalized = normalize_relative_path(key)
    except InvalidFileNameError as error:
        raise ShelfCacheError(f"Invalid cache key '{key}': {error}") from error
    if not normalized or normalized.endswith("/"):
        raise ShelfCacheError(
            f"Invalid cache key '{key}': use a non-empty name that does not end with '/'."
        )
    if normalized.endswith(METADATA_SUFFIX):
        raise ShelfCacheError(
            f"Invalid cache key '{key}': names ending in '{METADATA_SUFFIX}' are reserved "
            "for metadata records. Choose another key."
        )
    return normalized
