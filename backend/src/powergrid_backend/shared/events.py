"""Domain event primitives emitted by state transitions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class GameEvent(BaseModel):
    """Represents a single immutable notable occurrence inside a game."""

    model_config = ConfigDict(frozen=True)

    event_type: str = Field(..., min_length=1)
    total_ticks: int = Field(..., ge=0)
    player_id: str | None = Field(default=None, min_length=1)
    message: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=_utcnow)


__all__ = ["GameEvent"]
