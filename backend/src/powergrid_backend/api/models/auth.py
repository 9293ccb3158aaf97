"""Pydantic models for authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

NAME_PATTERN = r"^[A-Za-z0-9_ \-]{1,32}$"


class GuestLoginRequest(BaseModel):
    """Request a player identity for joining games."""

    name: str = Field(..., pattern=NAME_PATTERN)


class AuthTokenResponse(BaseModel):
    """Token issued to a player."""

    access_token: str
    token_type: str = "bearer"
    player_id: str


__all__ = ["AuthTokenResponse", "GuestLoginRequest"]
