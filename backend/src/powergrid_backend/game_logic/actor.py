"""Single-writer runtime that serialises commands and ticks for one game."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from powergrid_backend.game_logic.commands import (
    SERVICE_CALLER,
    Caller,
    GameCommand,
    TickCommand,
)
from powergrid_backend.game_logic.machine import (
    GameStateMachine,
    TimerDirective,
    TransitionResult,
)
from powergrid_backend.game_logic.persistence import GameStore  # noqa: TC001
from powergrid_backend.game_logic.state import Game, GamePhase
from powergrid_backend.game_logic.timer import TickTimer

logger = logging.getLogger(__name__)

GameListener = Callable[[Game], Awaitable[None]]


@dataclass(slots=True)
class _Envelope:
    command: GameCommand
    caller: Caller
    reply: asyncio.Future[TransitionResult] | None = None


class GameActor:
    """Owns the canonical snapshot of one game and applies events in order."""

    def __init__(
        self,
        game: Game,
        *,
        machine: GameStateMachine,
        store: GameStore,
        tick_interval_seconds: float | None = None,
    ) -> None:
        self._game = game
        self._machine = machine
        self._store = store
        self._tick_interval = (
            tick_interval_seconds
            if tick_interval_seconds is not None
            else machine.configuration.tick_interval_seconds
        )
        self._queue: asyncio.Queue[_Envelope | None] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._timer: TickTimer | None = None
        self._timer_task: asyncio.Task[None] | None = None
        self._listeners: list[GameListener] = []

    @property
    def game(self) -> Game:
        """Return the latest committed snapshot."""
        return self._game

    @property
    def is_running(self) -> bool:
        """Return ``True`` while the command loop is alive."""
        return self._task is not None and not self._task.done()

    @property
    def timer_running(self) -> bool:
        """Return ``True`` while a tick timer task is alive."""
        return self._timer_task is not None and not self._timer_task.done()

    def add_listener(self, listener: GameListener) -> None:
        """Register a coroutine called with every committed snapshot."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: GameListener) -> None:
        """Forget a previously registered listener."""
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        """Return how many observers are attached."""
        return len(self._listeners)

    async def start(self) -> None:
        """Start the command loop, resuming the timer for running games."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run())
        if self._game.phase is GamePhase.ACTIVE:
            self._restart_timer()

    async def stop(self) -> None:
        """Stop the timer and drain the command loop."""
        await self._stop_timer()
        if self._task is None:
            return
        await self._queue.put(None)
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def submit(self, command: GameCommand, caller: Caller) -> TransitionResult:
        """Enqueue *command* and wait until it has been applied."""
        if not self.is_running:
            msg = f"Game {self._game.id} is not running."
            raise RuntimeError(msg)
        reply: asyncio.Future[TransitionResult] = (
            asyncio.get_running_loop().create_future()
        )
        await self._queue.put(_Envelope(command=command, caller=caller, reply=reply))
        return await reply

    async def _run(self) -> None:
        while True:
            envelope = await self._queue.get()
            if envelope is None:
                return
            try:
                result = await self._process(envelope.command, envelope.caller)
            except Exception as exc:
                logger.exception(
                    "Game %s failed to apply %s", self._game.id, envelope.command.type
                )
                if envelope.reply is not None:
                    envelope.reply.set_exception(exc)
                elif self.timer_running:
                    # A failed tick would fail again on the next interval.
                    await self._stop_timer()
                continue
            if envelope.reply is not None and not envelope.reply.done():
                envelope.reply.set_result(result)

    async def _process(self, command: GameCommand, caller: Caller) -> TransitionResult:
        result = self._machine.apply(self._game, command, caller)
        if not result.accepted:
            return result

        # The snapshot is committed only once the store has accepted it.
        await asyncio.to_thread(self._store.save_game, result.game)
        self._game = result.game
        if result.timer is TimerDirective.START:
            self._restart_timer()
        elif result.timer is TimerDirective.STOP:
            await self._stop_timer()
        await self._broadcast(result.game)
        return result

    async def _broadcast(self, game: Game) -> None:
        for listener in list(self._listeners):
            try:
                await listener(game)
            except Exception:
                logger.warning(
                    "Dropping listener of game %s after delivery failure",
                    self._game.id,
                    exc_info=True,
                )
                self.remove_listener(listener)

    def _restart_timer(self) -> None:
        """Replace any running timer so that exactly one emits ticks."""
        if self._timer is not None:
            self._timer.cancel()
        if self._timer_task is not None:
            self._timer_task.cancel()
        timer = TickTimer(interval_seconds=self._tick_interval)
        self._timer = timer
        self._timer_task = asyncio.create_task(self._emit_ticks(timer))
        logger.info("Started tick timer for game %s", self._game.id)

    async def _stop_timer(self) -> None:
        timer_task = self._timer_task
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._timer_task = None
        if timer_task is not None:
            timer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer_task
            logger.info("Stopped tick timer for game %s", self._game.id)

    async def _emit_ticks(self, timer: TickTimer) -> None:
        async for _tick in timer.ticks():
            await self._queue.put(_Envelope(command=TickCommand(), caller=SERVICE_CALLER))


__all__ = ["GameActor", "GameListener"]
