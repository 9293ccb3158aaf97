"""Registry of running games and their single-writer actors."""

from __future__ import annotations

import asyncio
import logging
import secrets
from uuid import uuid4

from powergrid_backend.game_logic.actor import GameActor, GameListener
from powergrid_backend.game_logic.errors import (
    GameAlreadyExistsError,
    GameNotFoundError,
)
from powergrid_backend.game_logic.machine import GameStateMachine
from powergrid_backend.game_logic.persistence import GameStore, InMemoryGameStore
from powergrid_backend.game_logic.state import Game  # noqa: TC001

logger = logging.getLogger(__name__)

MAX_RANDOM_SEED = 1_000_000


class GameRegistry:
    """Creates games and hands out one actor per loaded game."""

    def __init__(
        self,
        *,
        store: GameStore,
        machine: GameStateMachine | None = None,
        tick_interval_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._machine = machine or GameStateMachine()
        self._tick_interval = tick_interval_seconds
        self._actors: dict[str, GameActor] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def create_default(cls) -> GameRegistry:
        """Return a registry backed by an in-memory store."""
        return cls(store=InMemoryGameStore())

    @property
    def machine(self) -> GameStateMachine:
        """Return the state machine shared by every game."""
        return self._machine

    async def create_game(
        self, *, game_id: str | None = None, random_seed: int | None = None
    ) -> Game:
        """Create and persist a new lobby."""
        async with self._lock:
            identifier = game_id or uuid4().hex[:8]
            if identifier in self._actors or await asyncio.to_thread(
                self._store.load_game, identifier
            ):
                raise GameAlreadyExistsError(identifier)
            seed = (
                random_seed
                if random_seed is not None
                else secrets.randbelow(MAX_RANDOM_SEED)
            )
            game = self._machine.create_game(game_id=identifier, random_seed=seed)
            await asyncio.to_thread(self._store.save_game, game)
        logger.info("Created game %s with seed %d", identifier, seed)
        return game

    def load_game(self, game_id: str) -> Game:
        """Return the latest snapshot of *game_id*.

        Falls back to a blocking store read, so async callers should run it
        in a worker thread.
        """
        actor = self._actors.get(game_id)
        if actor is not None:
            return actor.game
        game = self._store.load_game(game_id)
        if game is None:
            raise GameNotFoundError(game_id)
        return game

    async def acquire(
        self, game_id: str, *, listener: GameListener | None = None
    ) -> GameActor:
        """Return the running actor for *game_id*, starting it on first use."""
        async with self._lock:
            actor = self._actors.get(game_id)
            if actor is None:
                game = await asyncio.to_thread(self._store.load_game, game_id)
                if game is None:
                    raise GameNotFoundError(game_id)
                actor = GameActor(
                    game,
                    machine=self._machine,
                    store=self._store,
                    tick_interval_seconds=self._tick_interval,
                )
                self._actors[game_id] = actor
                await actor.start()
            if listener is not None:
                actor.add_listener(listener)
        return actor

    async def release(
        self, game_id: str, *, listener: GameListener | None = None
    ) -> None:
        """Detach *listener* and stop the actor once nobody is watching it.

        The actor is drained while the lock is held so that a concurrent
        :meth:`acquire` only reloads the game after its last save.
        """
        async with self._lock:
            actor = self._actors.get(game_id)
            if actor is None:
                return
            if listener is not None:
                actor.remove_listener(listener)
            if actor.listener_count > 0:
                return
            self._actors.pop(game_id, None)
            await actor.stop()
        logger.info("Unloaded idle game %s", game_id)

    async def shutdown(self) -> None:
        """Stop every running actor."""
        async with self._lock:
            actors = list(self._actors.values())
            self._actors.clear()
            for actor in actors:
                await actor.stop()


__all__ = ["MAX_RANDOM_SEED", "GameRegistry"]
