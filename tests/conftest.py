"""Pytest configuration for test isolation.

Settings are read from ``FT_*`` variables and ``DATABASE_URL``; a developer's
shell or ``.env`` could otherwise leak a real provider or database into the
suite. An autouse fixture clears them for every test, and another disposes
cached engines so SQLite files from one test are never reused by the next.
Logging configured by a CLI run is removed after each test.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date

import pytest
from db.client import dispose_all

from finance_tracker.catalog import CategoryCatalog
from finance_tracker.logging_setup import reset_logging

_ENV_KEYS = (
    "FT_AI_PROVIDER",
    "FT_AI_MODEL",
    "FT_OLLAMA_ENDPOINT",
    "FT_CONFIDENCE_THRESHOLD",
    "FT_QUERY_CACHE_TTL",
    "FT_CURRENCY_SYMBOL",
    "DATABASE_URL",
    "FINANCE_TRACKER_LOG_LEVEL",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
)

TODAY = date(2026, 3, 18)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _dispose_engines() -> Iterator[None]:
    yield
    dispose_all()


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    reset_logging()


@pytest.fixture
def catalog() -> CategoryCatalog:
    return CategoryCatalog.default()


@pytest.fixture
def today() -> date:
    return TODAY
