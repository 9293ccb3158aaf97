"""Database repositories."""

from powergrid_backend.database.repositories.game import GameRepository

__all__ = ["GameRepository"]
