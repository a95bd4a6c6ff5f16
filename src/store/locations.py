"""Relative location parsing under a storage root.

This module normalizes caller supplied relative paths and records
whether the caller named a folder (trailing separator) or a file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from core.constants import PATH_SEPARATOR
from core.errors import InvalidFileNameError
from store.roots import Root


def normalize_relative_path(raw_path: str) -> str:
    """Strip leading separators and collapse repeated separators.

    Args:
        raw_path: Caller supplied relative path.

    Returns:
        Normalized path, keeping one trailing separator if one was given.

    Raises:
        InvalidFileNameError: If the path contains '..' segments.
    """
    segments = [segment for segment in raw_path.split(PATH_SEPARATOR) if segment not in ("", ".")]
    if ".." in segments:
        raise InvalidFileNameError(
            f"Invalid relative path '{raw_path}': '..' segments would escape the storage root."
        )
    normalized = PATH_SEPARATOR.join(segments)
    if normalized and raw_path.endswith(PATH_SEPARATOR):
        return normalized + PATH_SEPARATOR
    return normalized


@dataclass(frozen=True)
class Location:
    """A storage root plus a normalized relative path.

    Attributes:
        root: Storage domain holding the location.
        relative_path: Normalized relative path under the root.
    """

    root: Root
    relative_path: str

    @classmethod
    def parse(cls, raw_path: str, root: Root) -> "Location":
        """Build a location from an unnormalized relative path."""
        return cls(root=root, relative_path=normalize_relative_path(raw_path))

    @property
    def names_folder(self) -> bool:
        """Whether the caller spelled this location as a folder."""
        return self.relative_path.endswith(PATH_SEPARATOR)

    @property
    def stripped_path(self) -> str:
        return self.relative_path.rstrip(PATH_SEPARATOR)

    @property
    def name(self) -> str:
        return PurePosixPath(self.stripped_path).name

    @property
    def suffix(self) -> str:
        return PurePosixPath(self.stripped_path).suffix

    def resolve(self, base_dir: Path) -> Path:
        """Join the location onto its root base directory.

        "album" and "album/" resolve to the same entry.
        """
        stripped = self.stripped_path
        if not stripped:
            return base_dir
        return base_dir.joinpath(*stripped.split(PATH_SEPARATOR))
