"""API layer: FastAPI routers, request models, and services."""

from powergrid_backend.api.app import create_api

__all__ = ["create_api"]
