"""Tests for the registry that owns running game actors."""

from __future__ import annotations

import asyncio

import pytest

from powergrid_backend.api.services import GameRegistry
from powergrid_backend.game_logic.commands import (
    Caller,
    InitiateBidCommand,
    JoinGameCommand,
    StartGameCommand,
)
from powergrid_backend.game_logic.errors import (
    GameAlreadyExistsError,
    GameNotFoundError,
)
from powergrid_backend.game_logic.persistence import InMemoryGameStore
from powergrid_backend.game_logic.state import Game, GamePhase


async def _ignore(_game: Game) -> None:
    return None


def test_create_game_assigns_seed_and_rejects_duplicates() -> None:
    registry = GameRegistry.create_default()

    async def scenario() -> None:
        game = await registry.create_game(game_id="alpha")
        assert game.phase is GamePhase.LOBBY
        assert game.random_seed >= 0
        with pytest.raises(GameAlreadyExistsError):
            await registry.create_game(game_id="alpha")

    asyncio.run(scenario())
    assert registry.load_game("alpha").id == "alpha"


def test_unknown_games_raise() -> None:
    registry = GameRegistry.create_default()

    with pytest.raises(GameNotFoundError):
        registry.load_game("missing")

    async def scenario() -> None:
        with pytest.raises(GameNotFoundError):
            await registry.acquire("missing")

    asyncio.run(scenario())


def test_actor_is_shared_and_released_when_idle() -> None:
    registry = GameRegistry.create_default()

    async def other(_game: Game) -> None:
        return None

    async def scenario() -> None:
        await registry.create_game(game_id="alpha", random_seed=3)
        first = await registry.acquire("alpha", listener=_ignore)
        second = await registry.acquire("alpha", listener=other)
        assert first is second
        assert first.listener_count == 2

        await registry.release("alpha", listener=_ignore)
        assert first.is_running

        await registry.release("alpha", listener=other)
        assert not first.is_running

        third = await registry.acquire("alpha")
        assert third is not first
        await registry.shutdown()
        assert not third.is_running

    asyncio.run(scenario())


def test_reacquire_during_release_waits_for_the_last_save() -> None:
    registry = GameRegistry(store=InMemoryGameStore(), tick_interval_seconds=0.01)
    alice = Caller(id="alice")

    async def scenario() -> None:
        await registry.create_game(game_id="alpha", random_seed=3)
        first = await registry.acquire("alpha", listener=_ignore)
        await first.submit(JoinGameCommand(name="Alice"), alice)
        await first.submit(StartGameCommand(), alice)
        await first.submit(InitiateBidCommand(blueprint_id="coal-plant-1"), alice)
        await asyncio.sleep(0.05)

        releasing = asyncio.create_task(registry.release("alpha", listener=_ignore))
        await asyncio.sleep(0)
        second = await registry.acquire("alpha")

        assert not first.is_running
        assert second is not first
        assert first.game.total_ticks >= 1
        assert second.game == first.game

        await releasing
        await registry.shutdown()

    asyncio.run(scenario())
