"""Shared utilities, shared models and cross-cutting helpers for the backend."""

from powergrid_backend.shared.enums import (
    BuildableKind,
    CommodityType,
    CornerPosition,
    HexDirection,
    Population,
    TerrainType,
)
from powergrid_backend.shared.events import GameEvent
from powergrid_backend.shared.rng import DeterministicRandomService
from powergrid_backend.shared.value_objects import CornerCoordinates, HexCoordinates

__all__ = [
    "BuildableKind",
    "CommodityType",
    "CornerCoordinates",
    "CornerPosition",
    "DeterministicRandomService",
    "GameEvent",
    "HexCoordinates",
    "HexDirection",
    "Population",
    "TerrainType",
]
