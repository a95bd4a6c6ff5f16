"""Shelf exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
Filesystem failures are not wrapped: they surface as OSError.
"""

from __future__ import annotations


class ShelfError(Exception):
    """Base exception for all Shelf failures."""


class ShelfConfigError(ShelfError):
    """Raised for invalid runtime configuration."""


class ShelfDependencyError(ShelfError):
    """Raised when an optional runtime dependency is missing."""


class ShelfStoreError(ShelfError):
    """Raised for object store failures."""


class LocationNotFoundError(ShelfStoreError):
    """Raised when reading or relocating a location that does not exist."""


class LocationExistsError(ShelfStoreError):
    """Raised when writing to a location that already exists."""


class InvalidFileNameError(ShelfStoreError):
    """Raised when a location cannot hold or decode the requested shape."""


class ShelfSerializationError(ShelfStoreError):
    """Raised when bytes cannot be encoded or decoded for a declared type."""


class ShelfCacheError(ShelfError):
    """Raised for invalid cache key bindings."""
