from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure repo root is importable for all tests, regardless of nested test layout.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from numerics.config import get_config  # noqa: E402
from verify.case_cache import CaseCache  # noqa: E402


@pytest.fixture
def cache() -> CaseCache:
    """A private in-memory cache so tests never share memoized tables."""
    return CaseCache()


@pytest.fixture
def engine_env(monkeypatch):
    """Set NUMERICS_* variables for one test and re-read the config."""

    def _set(**values: str) -> None:
        for name, value in values.items():
            monkeypatch.setenv(name, value)
        get_config.cache_clear()

    yield _set
    get_config.cache_clear()
