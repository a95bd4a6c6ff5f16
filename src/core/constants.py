"""Core constants used across Shelf modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".shelf")
DEFAULT_TEMP_DIR_NAME = "shelf"
DEFAULT_CACHE_PREFIX = "shelf/"
DOCUMENTS_DIR_NAME = "documents"
CACHES_DIR_NAME = "caches"
APPLICATION_SUPPORT_DIR_NAME = "application_support"
SHARED_CONTAINERS_DIR_NAME = "shared"
PATH_SEPARATOR = "/"
JSON_EXTENSION = ".json"
TEXT_EXTENSION = ".txt"
METADATA_SUFFIX = ".metadata"
TEMP_FILE_PREFIX = ".shelf-tmp-"
PROMOTION_FILE_PREFIX = ".shelf-promote-"
UNBOUNDED_LIFETIME = -1.0
TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")
CONFIG_FILE_KEYS = ("data_root", "temp_root", "cache_prefix", "strict_cache")
