"""SQLAlchemy schemas."""

from powergrid_backend.database.schemas.game import GameSchema

__all__ = ["GameSchema"]
