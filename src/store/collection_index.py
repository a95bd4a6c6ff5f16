"""Folder-as-collection member indexing.

This module owns the on-disk naming contract for collections: member
files are named by a zero-based integer index stem plus an extension,
and logical order is numeric stem order, never filesystem order.
"""

from __future__ import annotations

from pathlib import Path

from store.locations import Location


def member_paths(folder: Path) -> list[Path]:
    """List direct member files of a collection folder in logical order.

    Numeric stems come first in ascending numeric order. Members with
    non-numeric stems follow, ordered by file name. Hidden files and
    nested folders are not members.

    Args:
        folder: Collection folder path.

    Returns:
        Ordered member file paths.
    """
    indexed: list[tuple[int, Path]] = []
    named: list[Path] = []
    for child in folder.iterdir():
        if child.name.startswith(".") or not child.is_file():
            continue
        index = member_index(child)
        if index is None:
            named.append(child)
        else:
            indexed.append((index, child))
    indexed.sort(key=lambda item: item[0])
    named.sort(key=lambda item: item.name)
    return [path for _, path in indexed] + named


def member_index(path: Path) -> int | None:
    """Return the integer index embedded in a member stem, if any."""
    stem = path.name.split(".", 1)[0]
    if stem.isascii() and stem.isdigit():
        return int(stem)
    return None


def next_index(folder: Path) -> int:
    """Return the index for the next appended member.

    Args:
        folder: Collection folder path.

    Returns:
        Highest existing numeric index plus one, or 0 for none.
    """
    indices = [member_index(path) for path in member_paths(folder)]
    numeric = [index for index in indices if index is not None]
    return max(numeric) + 1 if numeric else 0


def member_name(index: int, extension: str) -> str:
    return f"{index}{extension}"


def collection_extension(location: Location, default_extension: str) -> str:
    """Return the extension shared by every member of a collection.

    A location basename that carries an extension ("messages.json")
    gives its extension to all members; otherwise the serializer default
    applies.
    """
    return location.suffix or default_extension
