"""Dependency providers for FastAPI routers."""

from __future__ import annotations

from functools import cache

from powergrid_backend.api.services import AuthService, GameRegistry
from powergrid_backend.database import DatabaseGameStore, build_database_service
from powergrid_backend.game_logic.persistence import GameStore, InMemoryGameStore
from powergrid_backend.settings import get_settings


@cache
def get_auth_service() -> AuthService:
    """Return the shared :class:`AuthService` instance."""

    return AuthService()


@cache
def get_game_registry() -> GameRegistry:
    """Return the process-wide registry using the configured game store."""

    settings = get_settings()
    store: GameStore
    if settings.game_store_backend == "database":
        store = DatabaseGameStore(build_database_service(settings.database_url))
    else:
        store = InMemoryGameStore()
    return GameRegistry(
        store=store, tick_interval_seconds=settings.tick_interval_seconds
    )


__all__ = ["get_auth_service", "get_game_registry"]
