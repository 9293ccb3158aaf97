"""Models used for API request and response payloads."""

from powergrid_backend.api.models.auth import AuthTokenResponse, GuestLoginRequest
from powergrid_backend.api.models.game import (
    CreateGameRequest,
    ErrorResponse,
    GameCreatedResponse,
    GameSnapshotResponse,
    GameStateMessage,
)

__all__ = [
    "AuthTokenResponse",
    "CreateGameRequest",
    "ErrorResponse",
    "GameCreatedResponse",
    "GameSnapshotResponse",
    "GameStateMessage",
    "GuestLoginRequest",
]
