"""Runtime configuration model for Shelf.

This module owns all environment variable and config file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import tempfile
from typing import Mapping, cast

from core.constants import (
    CONFIG_FILE_KEYS,
    DEFAULT_CACHE_PREFIX,
    DEFAULT_DATA_ROOT,
    DEFAULT_TEMP_DIR_NAME,
    FALSE_VALUES,
    PATH_SEPARATOR,
    TRUE_VALUES,
)
from core.errors import ShelfConfigError, ShelfDependencyError


@dataclass(frozen=True)
class ShelfConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Base directory holding the durable storage roots.
        temp_root: Base directory for the volatile storage root.
        cache_prefix: Relative folder prefix for cached keys.
        strict_cache: Whether cache persist failures reach the caller.
    """

    data_root: Path
    temp_root: Path
    cache_prefix: str
    strict_cache: bool

    @classmethod
    def from_env(cls) -> "ShelfConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ShelfConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("SHELF_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        temp_root_value = os.getenv(
            "SHELF_TEMP_ROOT", str(Path(tempfile.gettempdir()) / DEFAULT_TEMP_DIR_NAME)
        )
        cache_prefix = _parse_cache_prefix(
            os.getenv("SHELF_CACHE_PREFIX", DEFAULT_CACHE_PREFIX), "SHELF_CACHE_PREFIX"
        )
        strict_cache = _parse_bool(os.getenv("SHELF_STRICT_CACHE", "false"), "SHELF_STRICT_CACHE")
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            temp_root=Path(temp_root_value).expanduser().resolve(),
            cache_prefix=cache_prefix,
            strict_cache=strict_cache,
        )

    @classmethod
    def from_file(cls, config_path: str | Path) -> "ShelfConfig":
        """Build config from a YAML file, falling back to the environment.

        Args:
            config_path: Path to a YAML mapping with config keys.

        Returns:
            A validated config object.

        Raises:
            ShelfDependencyError: If PyYAML is unavailable.
            ShelfConfigError: If the file or its values are invalid.
        """
        mapping = _load_yaml_mapping(Path(config_path))
        base = cls.from_env()
        data_root = base.data_root
        temp_root = base.temp_root
        if "data_root" in mapping:
            data_root = _parse_path(mapping["data_root"], "data_root")
        if "temp_root" in mapping:
            temp_root = _parse_path(mapping["temp_root"], "temp_root")
        cache_prefix = base.cache_prefix
        if "cache_prefix" in mapping:
            cache_prefix = _parse_cache_prefix(mapping["cache_prefix"], "cache_prefix")
        strict_cache = base.strict_cache
        if "strict_cache" in mapping:
            strict_cache = _parse_bool(mapping["strict_cache"], "strict_cache")
        return cls(
            data_root=data_root,
            temp_root=temp_root,
            cache_prefix=cache_prefix,
            strict_cache=strict_cache,
        )


def _parse_bool(raw_value: object, field_name: str) -> bool:
    """Parse a boolean flag from env or file values.

    Args:
        raw_value: Raw value from environment or YAML.
        field_name: Source name used in error messages.

    Returns:
        Parsed boolean.

    Raises:
        ShelfConfigError: If value is not a recognized boolean.
    """
    if isinstance(raw_value, bool):
        return raw_value
    normalized = str(raw_value).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ShelfConfigError(
        f"Invalid {field_name} value: expected boolean, got '{raw_value}'. "
        f"Use one of {', '.join(TRUE_VALUES + FALSE_VALUES)}."
    )


def _parse_cache_prefix(raw_value: object, field_name: str) -> str:
    """Validate the cache folder prefix.

    Args:
        raw_value: Raw prefix value.
        field_name: Source name used in error messages.

    Returns:
        Prefix ending with a separator, or empty string.

    Raises:
        ShelfConfigError: If the prefix is absolute or escapes its root.
    """
    if not isinstance(raw_value, str):
        raise ShelfConfigError(
            f"Invalid {field_name} value: expected string, got {type(raw_value).__name__}."
        )
    if raw_value.startswith(PATH_SEPARATOR) or ".." in raw_value.split(PATH_SEPARATOR):
        raise ShelfConfigError(
            f"Invalid {field_name} value '{raw_value}': prefix must be a relative folder "
            "without '..' segments."
        )
    if raw_value and not raw_value.endswith(PATH_SEPARATOR):
        return raw_value + PATH_SEPARATOR
    return raw_value


def _parse_path(raw_value: object, field_name: str) -> Path:
    if not isinstance(raw_value, str) or not raw_value.strip():
        raise ShelfConfigError(
            f"Invalid {field_name} value in config file: expected non-empty path string."
        )
    return Path(raw_value).expanduser().resolve()


def _load_yaml_mapping(config_path: Path) -> Mapping[str, object]:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise ShelfDependencyError(
            "YAML config support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    config_file = config_path.expanduser().resolve()
    if not config_file.exists():
        raise ShelfConfigError(
            f"Config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise ShelfConfigError(
            f"Failed to read config at {config_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise ShelfConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ShelfConfigError(
            f"Invalid config at {config_file}: expected mapping, got {type(payload).__name__}."
        )
    unknown_keys = sorted(str(key) for key in payload if key not in CONFIG_FILE_KEYS)
    if unknown_keys:
        raise ShelfConfigError(
            f"Unknown config keys at {config_file}: {', '.join(unknown_keys)}. "
            f"Supported keys: {', '.join(CONFIG_FILE_KEYS)}."
        )
    return cast(Mapping[str, object], payload)
