"""Power grid game API entrypoint."""

from __future__ import annotations

import logging

import uvicorn

from powergrid_backend.api import create_api
from powergrid_backend.logging_config import configure_logging
from powergrid_backend.settings import get_settings

logger = logging.getLogger(__name__)

app = create_api()


def _run_uvicorn(*, reload: bool) -> None:
    """Start uvicorn with a consistent configuration."""
    config = get_settings()
    configure_logging(config.log_level)
    logger.info(
        "Starting power grid API on %s:%s (reload=%s, store=%s)",
        config.api_host,
        config.api_port,
        reload,
        config.game_store_backend,
    )
    uvicorn.run(
        "powergrid_backend.main:app",
        host=config.api_host,
        port=config.api_port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


def run_dev() -> None:
    """Run the development ASGI server with auto-reload."""
    _run_uvicorn(reload=True)


def run_prod() -> None:
    """Run the production ASGI server without auto-reload."""
    _run_uvicorn(reload=False)
