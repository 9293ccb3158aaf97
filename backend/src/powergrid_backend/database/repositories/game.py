"""Repository helpers for working with game snapshots."""

from typing import Any

from sqlalchemy.orm import Session

from powergrid_backend.database.schemas import GameSchema


class GameRepository:
    """Encapsulates persistence operations for :class:`GameSchema`."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, game_id: str) -> GameSchema | None:
        """Return game entity by game's ID."""
        return self._session.get(GameSchema, game_id)

    def upsert(
        self,
        *,
        game_id: str,
        random_seed: int,
        phase: str,
        total_ticks: int,
        snapshot: dict[str, Any],
    ) -> GameSchema:
        """Insert a new game row or overwrite the stored snapshot."""
        game = self.get_by_id(game_id)
        if game is None:
            game = GameSchema(id=game_id, random_seed=random_seed)
            self._session.add(game)
        game.phase = phase
        game.total_ticks = total_ticks
        game.snapshot = snapshot
        self._session.flush()
        return game
