"""Database connectivity helpers and game snapshot storage."""

from powergrid_backend.database.base import BaseSchema
from powergrid_backend.database.dependencies import build_database_service
from powergrid_backend.database.repositories import GameRepository
from powergrid_backend.database.schemas import GameSchema
from powergrid_backend.database.service import DatabaseService
from powergrid_backend.database.store import DatabaseGameStore

__all__ = [
    "BaseSchema",
    "DatabaseGameStore",
    "DatabaseService",
    "GameRepository",
    "GameSchema",
    "build_database_service",
]
