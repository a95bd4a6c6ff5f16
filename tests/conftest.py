"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_SHELF_ENV_VARS = (
    "SHELF_DATA_ROOT",
    "SHELF_TEMP_ROOT",
    "SHELF_CACHE_PREFIX",
    "SHELF_STRICT_CACHE",
)


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def _isolated_shelf_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point default roots at the test directory and drop caller overrides."""
    for name in _SHELF_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SHELF_DATA_ROOT", str(tmp_path / "default-data"))
    monkeypatch.setenv("SHELF_TEMP_ROOT", str(tmp_path / "default-tmp"))
