"""Path-addressed object store with folder-as-collection semantics.

This module maps values onto files and folders under storage roots.
A single value is one file; a sequence is a folder of index-named
member files. Appends merge new values into whatever shape is already
on disk and never discard existing content.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import shutil
from typing import Any, Iterable, Mapping, Union
from uuid import uuid4

from core.config import ShelfConfig
from core.constants import PROMOTION_FILE_PREFIX, TEMP_FILE_PREFIX
from core.errors import (
    InvalidFileNameError,
    LocationExistsError,
    LocationNotFoundError,
    ShelfSerializationError,
    ShelfStoreError,
)
from core.logging_config import get_logger
from store.collection_index import (
    collection_extension,
    member_name,
    member_paths,
    next_index,
)
from store.locations import Location, normalize_relative_path
from store.roots import Root, RootResolver
from store.serializers import JsonSerializer, Serializer, serializer_for

_LOGGER = get_logger(__name__)

Target = Union[str, Path]


@dataclass(frozen=True)
class _Resolved:
    """A target resolved to a filesystem path plus caller intent."""

    path: Path
    location: Location | None

    @property
    def names_folder(self) -> bool:
        return self.location is not None and self.location.names_folder

    def extension_for(self, serializer: Serializer) -> str:
        if self.location is not None:
            return collection_extension(self.location, serializer.extension)
        return self.path.suffix or serializer.extension


class ObjectStore:
    """Filesystem object store over configured storage roots.

    Every operation takes either a relative path plus a root, or an
    absolute ``Path`` handle (as returned by ``url_for``) with no root.
    """

    def __init__(
        self,
        config: ShelfConfig | None = None,
        resolver: RootResolver | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            config: Optional runtime configuration.
            resolver: Optional root resolver; built from config when omitted.
        """
        self._config = config or ShelfConfig.from_env()
        self._resolver = resolver or RootResolver(self._config)

    def url_for(self, path: Target, root: Root | None = None) -> Path:
        """Resolve a location to its absolute filesystem path.

        Args:
            path: Relative path or resolved handle.
            root: Storage root for relative paths.

        Returns:
            Absolute path; the entry itself may not exist.
        """
        return self._locate(path, root).path

    def save(
        self,
        value: Any,
        path: Target,
        root: Root | None = None,
        *,
        many: bool = False,
        serializer: Serializer | None = None,
    ) -> Path:
        """Write a new single item, or a new collection when ``many`` is set.

        Args:
            value: Value to store, or a sequence of values with ``many``.
            path: Relative path or resolved handle.
            root: Storage root for relative paths.
            many: Store ``value`` as a folder of index-named members.
            serializer: Encoder to use; inferred from the value type when omitted.

        Returns:
            Path of the written file or collection folder.

        Raises:
            LocationExistsError: If anything already exists at the location.
            InvalidFileNameError: If a single item targets a folder path.
            ShelfSerializationError: If the value cannot be encoded.
        """
        resolved = self._locate(path, root)
        if many:
            items = _as_items(value)
            codec = serializer or _infer_serializer(items)
            encoded = [codec.encode(item) for item in items]
            self._ensure_absent(resolved.path)
            extension = resolved.extension_for(codec)
            resolved.path.mkdir(parents=True, exist_ok=False)
            _write_members(resolved.path, encoded, 0, extension)
            _LOGGER.info("collection_saved", path=str(resolved.path), count=len(encoded))
            return resolved.path
        if resolved.names_folder:
            raise InvalidFileNameError(
                f"Cannot save a single item to folder location {resolved.path}. "
                "Drop the trailing '/' or save a sequence with many=True."
            )
        codec = serializer or serializer_for(type(value))
        data = codec.encode(value)
        self._ensure_absent(resolved.path)
        resolved.path.parent.mkdir(parents=True, exist_ok=True)
        _write_new_file(resolved.path, data)
        _LOGGER.info("item_saved", path=str(resolved.path), size=len(data))
        return resolved.path

    def retrieve(
        self,
        path: Target,
        root: Root | None = None,
        *,
        value_type: Any = bytes,
        many: bool = False,
        strict: bool = False,
        serializer: Serializer | None = None,
    ) -> Any:
        """Read a single item, or a collection when ``many`` is set.

        Collection members that do not decode under ``value_type`` are
        skipped unless ``strict`` is set, so one folder of mixed content
        can be queried by element type.

        Args:
            path: Relative path or resolved handle.
            root: Storage root for relative paths.
            value_type: Declared item or element type.
            many: Read the location as an ordered sequence.
            strict: Fail on the first member that does not decode.
            serializer: Decoder to use; chosen from ``value_type`` when omitted.

        Returns:
            Decoded value, or ordered list of decoded members.

        Raises:
            LocationNotFoundError: If nothing exists at the location.
            InvalidFileNameError: If the shape or content does not match.
        """
        resolved = self._locate(path, root)
        if not resolved.path.exists():
            raise LocationNotFoundError(
                f"Nothing stored at {resolved.path}. Save a value before retrieving it."
            )
        codec = serializer or serializer_for(value_type)
        if resolved.path.is_dir():
            if not many:
                raise InvalidFileNameError(
                    f"Location {resolved.path} is a folder and cannot decode as a single item. "
                    "Retrieve it with many=True."
                )
            return _read_members(resolved.path, codec, strict)
        item = _decode_file(resolved.path, codec)
        return [item] if many else item

    def append(
        self,
        value: Any,
        path: Target,
        root: Root | None = None,
        *,
        many: bool = False,
        value_type: Any = None,
        serializer: Serializer | None = None,
    ) -> Path:
        """Append one value, or several with ``many``, to a collection.

        A missing location becomes a new collection. A single stored item
        is promoted in place to a collection holding it at index 0. An
        existing collection grows after its highest index. Existing
        content is validated against the element type before anything
        on disk changes.

        Args:
            value: Value to append, or a sequence of values with ``many``.
            path: Relative path or resolved handle.
            root: Storage root for relative paths.
            many: Treat ``value`` as a sequence of new elements.
            value_type: Element type used to validate existing content;
                inferred from the appended values when omitted.
            serializer: Codec to use; chosen from the element type when omitted.

        Returns:
            Path of the collection folder.

        Raises:
            InvalidFileNameError: If existing content does not decode.
            ShelfSerializationError: If new values cannot be encoded.
        """
        resolved = self._locate(path, root)
        items = _as_items(value) if many else [value]
        if serializer is not None:
            codec = serializer
        elif value_type is not None:
            codec = serializer_for(value_type)
        else:
            codec = _infer_serializer(items)
        encoded = [codec.encode(item) for item in items]
        extension = resolved.extension_for(codec)
        target = resolved.path
        if not target.exists():
            target.mkdir(parents=True, exist_ok=False)
            _write_members(target, encoded, 0, extension)
            _LOGGER.info("collection_saved", path=str(target), count=len(encoded))
            return target
        if target.is_dir():
            _read_members(target, codec, strict=True)
            start = next_index(target)
            _write_members(target, encoded, start, extension)
            _LOGGER.info(
                "collection_appended", path=str(target), start_index=start, count=len(encoded)
            )
            return target
        _promote_to_collection(target, codec, encoded, extension)
        return target

    def exists(self, path: Target, root: Root | None = None) -> bool:
        """Return whether a file or folder exists at the location."""
        return self._locate(path, root).path.exists()

    def is_folder(self, path: Target, root: Root | None = None) -> bool:
        """Return whether the location is an existing folder."""
        return self._locate(path, root).path.is_dir()

    def remove(self, path: Target, root: Root | None = None) -> None:
        """Delete a file, or a folder with everything inside it.

        Raises:
            LocationNotFoundError: If nothing exists at the location.
            InvalidFileNameError: If the location is the root itself.
        """
        resolved = self._locate(path, root)
        if resolved.location is not None and not resolved.location.stripped_path:
            raise InvalidFileNameError(
                "Refusing to remove a storage root itself. Use clear(root) to empty it."
            )
        target = resolved.path
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        else:
            raise LocationNotFoundError(f"Cannot remove {target}: nothing stored there.")
        _LOGGER.info("location_removed", path=str(target))

    def clear(self, root: Root) -> None:
        """Remove every entry directly under a root, keeping the root folder."""
        base_dir = self._resolver.resolve(root)
        removed = 0
        for child in base_dir.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
            removed += 1
        _LOGGER.info("root_cleared", path=str(base_dir), removed=removed)

    def move(
        self,
        source: Target,
        root: Root | None = None,
        *,
        to_root: Root | None = None,
        destination: Target | None = None,
    ) -> Path:
        """Relocate a file or folder within or across roots.

        With no ``destination`` the same relative path is used under
        ``to_root``. A relative ``destination`` resolves under ``to_root``,
        or under ``root`` when ``to_root`` is omitted.

        Returns:
            Destination path.

        Raises:
            LocationNotFoundError: If the source does not exist.
            LocationExistsError: If the destination already exists.
        """
        source_path = self._locate(source, root).path
        if destination is None:
            if not isinstance(source, str) or to_root is None:
                raise ShelfStoreError(
                    "move() needs a destination, or a relative source plus to_root."
                )
            destination_path = self._locate(source, to_root).path
        elif isinstance(destination, str):
            destination_path = self._locate(destination, to_root or root).path
        else:
            destination_path = self._locate(destination, None).path
        return self._relocate(source_path, destination_path)

    def rename(self, path: Target, new_path: Target, root: Root | None = None) -> Path:
        """Rename a location inside its root.

        A relative ``new_path`` given for a handle resolves next to the
        handle's parent folder.

        Returns:
            Destination path.
        """
        source_path = self._locate(path, root).path
        if isinstance(new_path, str) and root is None:
            destination_path = source_path.parent / normalize_relative_path(new_path).rstrip("/")
        else:
            destination_path = self._locate(new_path, root).path
        return self._relocate(source_path, destination_path)

    def _relocate(self, source_path: Path, destination_path: Path) -> Path:
        if not source_path.exists():
            raise LocationNotFoundError(f"Cannot move {source_path}: nothing stored there.")
        self._ensure_absent(destination_path)
        destination_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source_path), str(destination_path))
        _LOGGER.info("location_moved", source=str(source_path), destination=str(destination_path))
        return destination_path

    def _locate(self, path: Target, root: Root | None) -> _Resolved:
        if isinstance(path, Path):
            if root is not None:
                raise ShelfStoreError(
                    f"Resolved handle {path} already names its root; call without root."
                )
            return _Resolved(path=path, location=None)
        if root is None:
            raise ShelfStoreError(
                f"Relative path '{path}' needs a storage root. Pass root or use url_for()."
            )
        location = Location.parse(path, root)
        return _Resolved(path=location.resolve(self._resolver.resolve(root)), location=location)

    @staticmethod
    def _ensure_absent(target: Path) -> None:
        if target.exists():
            raise LocationExistsError(
                f"Location {target} already exists. Remove it before writing a new value."
            )


def _as_items(value: Any) -> list[Any]:
    if isinstance(value, (str, bytes, bytearray, Mapping)) or not isinstance(value, Iterable):
        raise ShelfStoreError(
            f"Expected a sequence of values with many=True, got {type(value).__name__}."
        )
    return list(value)


def _infer_serializer(items: list[Any]) -> Serializer:
    if not items:
        return JsonSerializer()
    return serializer_for(type(items[0]))


def _write_new_file(target: Path, data: bytes) -> None:
    """Write bytes through a hidden sibling and link them into place.

    Linking fails when the target exists, so a concurrent writer can
    never be overwritten.
    """
    temp_path = target.with_name(f"{TEMP_FILE_PREFIX}{target.name}-{uuid4().hex}")
    try:
        temp_path.write_bytes(data)
        try:
            os.link(temp_path, target)
        except FileExistsError as error:
            raise LocationExistsError(
                f"Location {target} already exists. Remove it before writing a new value."
            ) from error
    finally:
        if temp_path.exists():
            temp_path.unlink()


def _write_members(folder: Path, encoded: list[bytes], start: int, extension: str) -> None:
    for offset, data in enumerate(encoded):
        _write_new_file(folder / member_name(start + offset, extension), data)


def _decode_file(path: Path, serializer: Serializer) -> Any:
    try:
        return serializer.decode(path.read_bytes())
    except ShelfSerializationError as error:
        raise InvalidFileNameError(
            f"Stored item at {path} does not decode as the requested type: {error}"
        ) from error


def _read_members(folder: Path, serializer: Serializer, strict: bool) -> list[Any]:
    values: list[Any] = []
    for member in member_paths(folder):
        try:
            values.append(serializer.decode(member.read_bytes()))
        except ShelfSerializationError as error:
            if strict:
                raise InvalidFileNameError(
                    f"Collection member {member} does not decode as the requested type: {error}"
                ) from error
            _LOGGER.debug("member_skipped", path=str(member), reason=str(error))
    return values


def _promote_to_collection(
    target: Path,
    serializer: Serializer,
    encoded: list[bytes],
    extension: str,
) -> None:
    """Replace a single stored file with a collection holding it first.

    The original file is moved aside until the collection is complete
    and restored if building the collection fails.
    """
    _decode_file(target, serializer)
    original = target.read_bytes()
    aside = target.with_name(f"{PROMOTION_FILE_PREFIX}{target.name}-{uuid4().hex}")
    os.replace(target, aside)
    try:
        target.mkdir()
        _write_members(target, [original, *encoded], 0, extension)
    except (OSError, ShelfStoreError):
        if target.is_dir():
            shutil.rmtree(target)
        os.replace(aside, target)
        raise
    aside.unlink()
    _LOGGER.info("item_promoted_to_collection", path=str(target), count=len(encoded) + 1)
