"""Tests for the SQLAlchemy-backed game store."""

from __future__ import annotations

import threading

from powergrid_backend.database import DatabaseGameStore, DatabaseService, GameSchema
from powergrid_backend.game_logic.commands import Caller, JoinGameCommand
from powergrid_backend.game_logic.machine import GameStateMachine


def _store() -> tuple[DatabaseGameStore, DatabaseService]:
    database = DatabaseService("sqlite://")
    database.create_schema()
    return DatabaseGameStore(database), database


def test_game_schema_table_name() -> None:
    assert GameSchema.__tablename__ == "games"
    assert GameSchema.__table__.c.snapshot is not None


def test_missing_game_loads_as_none() -> None:
    store, _database = _store()

    assert store.load_game("nope") is None


def test_snapshot_survives_save_and_load() -> None:
    store, database = _store()
    machine = GameStateMachine()
    game = machine.create_game(game_id="game-1", random_seed=42)
    game = machine.apply(game, JoinGameCommand(name="Alice"), Caller(id="alice")).game

    store.save_game(game)
    loaded = store.load_game("game-1")

    assert loaded is not None
    assert loaded.model_dump(mode="json") == game.model_dump(mode="json")
    assert loaded.hex_grid.cell(game.hex_grid.cells[0].coordinates) is not None

    with database.session() as session:
        row = session.get(GameSchema, "game-1")
        assert row is not None
        assert row.phase == "lobby"
        assert row.random_seed == 42


def test_saving_twice_overwrites_the_row() -> None:
    store, database = _store()
    machine = GameStateMachine()
    game = machine.create_game(game_id="game-1", random_seed=42)
    store.save_game(game)

    joined = machine.apply(game, JoinGameCommand(name="Alice"), Caller(id="alice"))
    store.save_game(joined.game)

    loaded = store.load_game("game-1")
    assert loaded is not None
    assert set(loaded.players) == {"alice"}
    with database.session() as session:
        assert session.query(GameSchema).count() == 1


def test_in_memory_database_is_shared_across_threads() -> None:
    store, _database = _store()
    game = GameStateMachine().create_game(game_id="game-1", random_seed=1)

    worker = threading.Thread(target=store.save_game, args=(game,))
    worker.start()
    worker.join()

    assert store.load_game("game-1") is not None
