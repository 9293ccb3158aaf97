"""Cancellable periodic tick source for running games."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
else:  # pragma: no cover - runtime fallback
    AsyncIterator = Any

from pydantic import BaseModel, Field

from powergrid_backend.game_logic.configuration import DEFAULT_TICK_INTERVAL_SECONDS


class TimerTick(BaseModel):
    """Single tick signal emitted by :class:`TickTimer`."""

    sequence: int = Field(..., ge=1)
    emitted_at: datetime


class TickTimer:
    """Asynchronous periodic emitter that stops as soon as it is cancelled."""

    def __init__(
        self, *, interval_seconds: float = DEFAULT_TICK_INTERVAL_SECONDS
    ) -> None:
        if interval_seconds < 0:
            msg = "Tick interval must be non-negative."
            raise ValueError(msg)

        self._interval = interval_seconds
        self._cancel_event: asyncio.Event | None = None

    @property
    def interval_seconds(self) -> float:
        """Return the delay between two ticks."""
        return self._interval

    @property
    def is_running(self) -> bool:
        """Return ``True`` while a tick stream is active."""
        return self._cancel_event is not None and not self._cancel_event.is_set()

    async def ticks(self) -> AsyncIterator[TimerTick]:
        """Yield one tick per interval until cancelled."""
        cancel_event = asyncio.Event()
        self._cancel_event = cancel_event
        sequence = 0

        while not cancel_event.is_set():
            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=self._interval)
            except TimeoutError:
                sequence += 1
                yield TimerTick(sequence=sequence, emitted_at=datetime.now(tz=UTC))
                continue

        if self._cancel_event is cancel_event:
            self._cancel_event = None

    def cancel(self) -> None:
        """Stop the active tick stream, if any."""
        if self._cancel_event is not None:
            self._cancel_event.set()


__all__ = ["TickTimer", "TimerTick"]
