"""Storage roots and their base directory resolution.

This module names the storage domains a location can live in and maps
each one onto exactly one base directory under the configured roots.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from core.config import ShelfConfig
from core.constants import (
    APPLICATION_SUPPORT_DIR_NAME,
    CACHES_DIR_NAME,
    DOCUMENTS_DIR_NAME,
    PATH_SEPARATOR,
    SHARED_CONTAINERS_DIR_NAME,
)
from core.errors import ShelfConfigError


class Directory(Enum):
    """Well-known storage domains.

    Attributes:
        DOCUMENTS: Durable, user visible data.
        CACHES: Durable data that may be regenerated.
        APPLICATION_SUPPORT: Durable, application private data.
        TEMPORARY: Volatile scratch data.
    """

    DOCUMENTS = "documents"
    CACHES = "caches"
    APPLICATION_SUPPORT = "application_support"
    TEMPORARY = "temporary"


@dataclass(frozen=True)
class SharedContainer:
    """Named storage domain shared between cooperating programs."""

    group_name: str

    def __post_init__(self) -> None:
        name = self.group_name.strip()
        if not name or PATH_SEPARATOR in name or name in {".", ".."}:
            raise ShelfConfigError(
                f"Invalid shared container name '{self.group_name}'. "
                "Use a non-empty name without path separators."
            )


Root = Union[Directory, SharedContainer]


class RootResolver:
    """Resolve storage roots to base directories, creating them on demand."""

    def __init__(self, config: ShelfConfig) -> None:
        self._config = config

    def resolve(self, root: Root) -> Path:
        """Return the base directory for a root.

        Args:
            root: Storage domain to resolve.

        Returns:
            Existing absolute base directory.

        Raises:
            ShelfConfigError: If root is not a known storage domain.
        """
        base_dir = self._base_dir(root)
        base_dir.mkdir(parents=True, exist_ok=True)
        return base_dir

    def _base_dir(self, root: Root) -> Path:
        if isinstance(root, SharedContainer):
            return self._config.data_root / SHARED_CONTAINERS_DIR_NAME / root.group_name
        if root is Directory.DOCUMENTS:
            return self._config.data_root / DOCUMENTS_DIR_NAME
        if root is Directory.CACHES:
            return self._config.data_root / CACHES_DIR_NAME
        if root is Directory.APPLICATION_SUPPORT:
            return self._config.data_root / APPLICATION_SUPPORT_DIR_NAME
        if root is Directory.TEMPORARY:
            return self._config.temp_root
        raise ShelfConfigError(
            f"Unknown storage root {root!r}. Use a Directory member or SharedContainer."
        )
