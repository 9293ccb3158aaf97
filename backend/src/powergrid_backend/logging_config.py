"""Process-wide logging setup."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Route ``powergrid_backend`` loggers to stderr at *level*."""
    logging.basicConfig(format=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    logging.getLogger("powergrid_backend").setLevel(level.upper())


__all__ = ["configure_logging"]
