"""Hex map topology, terrain and population demand."""

from __future__ import annotations

import json
import logging
from functools import cache
from importlib import resources
from pathlib import Path  # noqa: TC003

from pydantic import BaseModel, Field, PrivateAttr, model_validator
from pydantic.config import ConfigDict

from powergrid_backend.shared.enums import Population, TerrainType
from powergrid_backend.shared.value_objects import HexCoordinates

logger = logging.getLogger(__name__)

POWER_CONSUMPTION_KW: dict[Population, float] = {
    Population.UNPOPULATED: 0,
    Population.VILLAGE: 10,
    Population.TOWN: 25,
    Population.CITY: 50,
    Population.METROPOLIS: 100,
    Population.MEGALOPOLIS: 200,
}

_DEFAULT_MAP_RESOURCE = "default_map.json"


class HexCell(BaseModel):
    """A single map cell."""

    model_config = ConfigDict(frozen=True)

    coordinates: HexCoordinates
    region_name: str | None = None
    terrain_type: TerrainType = TerrainType.PLAINS
    population: Population = Population.UNPOPULATED
    city_name: str | None = None

    @property
    def demand_kw(self) -> float:
        """Return the hourly power demand of the cell's population."""
        return POWER_CONSUMPTION_KW[self.population]


class HexGrid(BaseModel):
    """Read-mostly map topology indexed by coordinates."""

    model_config = ConfigDict(frozen=True)

    cells: tuple[HexCell, ...] = Field(default_factory=tuple)

    _index: dict[HexCoordinates, HexCell] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _validate_unique_cells(self) -> HexGrid:
        """Ensure each coordinate appears at most once."""
        seen = {cell.coordinates for cell in self.cells}
        if len(seen) != len(self.cells):
            msg = "Hex grid must not contain duplicate coordinates."
            raise ValueError(msg)
        return self

    def model_post_init(self, __context: object) -> None:
        self._index = {cell.coordinates: cell for cell in self.cells}

    def cell(self, coordinates: HexCoordinates) -> HexCell | None:
        """Return the cell at *coordinates* or ``None`` when off the map."""
        return self._index.get(coordinates)

    def __contains__(self, coordinates: object) -> bool:
        return coordinates in self._index

    def populated_cells(self) -> tuple[HexCell, ...]:
        """Return cells with non-zero demand in a stable row-major order."""
        populated = [cell for cell in self.cells if cell.demand_kw > 0]
        return tuple(
            sorted(populated, key=lambda cell: (cell.coordinates.z, cell.coordinates.x))
        )


def parse_hex_grid(raw: str) -> HexGrid:
    """Build a :class:`HexGrid` from its JSON representation."""
    return HexGrid.model_validate(json.loads(raw))


@cache
def load_default_hex_grid() -> HexGrid:
    """Return the map bundled with the package."""
    raw = (
        resources.files("powergrid_backend.game_logic")
        .joinpath("data", _DEFAULT_MAP_RESOURCE)
        .read_text(encoding="utf-8")
    )
    return parse_hex_grid(raw)


def load_hex_grid(path: Path | None = None) -> HexGrid:
    """Load a map from *path*, falling back to the bundled default map."""
    if path is None:
        return load_default_hex_grid()
    logger.info("Loading hex grid from %s", path)
    return parse_hex_grid(path.read_text(encoding="utf-8"))


__all__ = [
    "POWER_CONSUMPTION_KW",
    "HexCell",
    "HexGrid",
    "load_default_hex_grid",
    "load_hex_grid",
    "parse_hex_grid",
]
