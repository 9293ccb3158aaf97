"""Shared enumerations used across the backend."""

from enum import IntEnum, StrEnum


class CommodityType(StrEnum):
    """Fuel commodities traded on the market."""

    COAL = "coal"
    OIL = "oil"
    GAS = "gas"
    URANIUM = "uranium"


class TerrainType(StrEnum):
    """Terrain categories for hex cells."""

    FOREST = "Forest"
    PLAINS = "Plains"
    MOUNTAINS = "Mountains"
    DESERT = "Desert"
    WATER = "Water"


class Population(IntEnum):
    """Population density of a hex cell, in increasing order."""

    UNPOPULATED = 0
    VILLAGE = 1
    TOWN = 2
    CITY = 3
    METROPOLIS = 4
    MEGALOPOLIS = 5


class BuildableKind(StrEnum):
    """Kinds of structures players can place on the map."""

    POWER_PLANT = "power_plant"
    POWER_POLE = "power_pole"


class CornerPosition(StrEnum):
    """Vertical corners of a pointy-top hex."""

    NORTH = "North"
    SOUTH = "South"


class HexDirection(IntEnum):
    """Neighbour directions around a pointy-top hex."""

    SE = 0
    E = 1
    NE = 2
    NW = 3
    W = 4
    SW = 5


__all__ = [
    "BuildableKind",
    "CommodityType",
    "CornerPosition",
    "HexDirection",
    "Population",
    "TerrainType",
]
