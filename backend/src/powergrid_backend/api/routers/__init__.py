"""Route definitions for public HTTP and WebSocket endpoints."""

from powergrid_backend.api.routers.auth import router as auth_router
from powergrid_backend.api.routers.game import router as game_router

__all__ = ["auth_router", "game_router"]
