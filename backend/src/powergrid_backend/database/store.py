"""Database-backed implementation of the game store protocol."""

from __future__ import annotations

import logging

from powergrid_backend.database.repositories import GameRepository
from powergrid_backend.database.service import DatabaseService  # noqa: TC001
from powergrid_backend.game_logic.state import Game

logger = logging.getLogger(__name__)


class DatabaseGameStore:
    """Persist full game snapshots as JSON rows through SQLAlchemy."""

    def __init__(self, database: DatabaseService) -> None:
        self._database = database

    def save_game(self, game: Game) -> None:
        """Write *game* to the ``games`` table in its own transaction."""
        with self._database.session() as session:
            GameRepository(session).upsert(
                game_id=game.id,
                random_seed=game.random_seed,
                phase=game.phase.value,
                total_ticks=game.total_ticks,
                snapshot=game.model_dump(mode="json"),
            )

    def load_game(self, game_id: str) -> Game | None:
        """Return the stored snapshot for *game_id*, if any."""
        with self._database.session() as session:
            row = GameRepository(session).get_by_id(game_id)
            if row is None:
                return None
            logger.debug("Loaded game %s at tick %d", game_id, row.total_ticks)
            return Game.model_validate(row.snapshot)


__all__ = ["DatabaseGameStore"]
