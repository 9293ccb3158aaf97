"""Power grid game backend package wiring and entrypoints."""

from powergrid_backend.main import run_dev, run_prod
from powergrid_backend.settings import BackendSettings, get_settings

__all__ = ["BackendSettings", "get_settings", "run_dev", "run_prod"]
