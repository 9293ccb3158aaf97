"""Service layer for API-specific business logic."""

from powergrid_backend.api.services.auth import (
    AuthService,
    InvalidTokenError,
    TokenPayload,
)
from powergrid_backend.api.services.game_registry import GameRegistry

__all__ = [
    "AuthService",
    "GameRegistry",
    "InvalidTokenError",
    "TokenPayload",
]
