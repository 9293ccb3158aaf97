"""Test configuration and fixtures for the backend test suite."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

# The package imports the ASGI app eagerly, which reads settings on import.
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key")

from powergrid_backend.api.dependencies import (  # noqa: E402
    get_auth_service,
    get_game_registry,
)
from powergrid_backend.settings import get_settings  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import Iterator


def _clear_caches() -> None:
    get_settings.cache_clear()
    get_auth_service.cache_clear()
    get_game_registry.cache_clear()


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Load settings with predictable values and an in-memory game store."""
    monkeypatch.setenv("AUTH_SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("GAME_STORE_BACKEND", "memory")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    _clear_caches()
    yield
    _clear_caches()
