"""Persistence abstractions for game snapshots.

The game logic layer stores the authoritative aggregate of every running game
through :class:`GameStore` without depending on the database layer. The API
layer picks a concrete adapter (in-memory, database-backed, etc.).
"""

from __future__ import annotations

from typing import Protocol

from powergrid_backend.game_logic.state import Game  # noqa: TC001


class GameStore(Protocol):
    """Protocol describing how game snapshots are persisted."""

    def save_game(self, game: Game) -> None:
        """Persist *game*, replacing any previous snapshot with the same id."""

    def load_game(self, game_id: str) -> Game | None:
        """Return the latest stored snapshot for *game_id* or ``None``."""


class InMemoryGameStore:
    """Trivial in-memory implementation of :class:`GameStore`."""

    def __init__(self) -> None:
        self._games: dict[str, Game] = {}

    def save_game(self, game: Game) -> None:
        """Store *game* keyed by its identifier."""
        self._games[game.id] = game

    def load_game(self, game_id: str) -> Game | None:
        """Return the stored snapshot for *game_id* if available."""
        return self._games.get(game_id)


__all__ = ["GameStore", "InMemoryGameStore"]
