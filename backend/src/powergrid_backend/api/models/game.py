"""Pydantic models for the game HTTP and WebSocket contract."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from powergrid_backend.game_logic.state import GamePhase  # noqa: TC001

GAME_ID_PATTERN = r"^[A-Za-z0-9_\-]{1,64}$"


class CreateGameRequest(BaseModel):
    """Request body for creating a new lobby."""

    game_id: str | None = Field(default=None, pattern=GAME_ID_PATTERN)
    random_seed: int | None = Field(default=None, ge=0)


class GameCreatedResponse(BaseModel):
    """Identifiers of a freshly created lobby."""

    game_id: str
    random_seed: int
    phase: GamePhase


class GameSnapshotResponse(BaseModel):
    """Public snapshot returned by the HTTP API."""

    game: dict[str, Any]


class GameStateMessage(BaseModel):
    """Snapshot pushed to a connected player after every committed change."""

    type: Literal["game_state"] = "game_state"
    game: dict[str, Any]
    private: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Structured error payload sent only to the offending connection."""

    type: Literal["error"] = "error"
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "GAME_ID_PATTERN",
    "CreateGameRequest",
    "ErrorResponse",
    "GameCreatedResponse",
    "GameSnapshotResponse",
    "GameStateMessage",
]
