"""Creating buildables from blueprints and validating where they may go."""

from __future__ import annotations

from collections.abc import Sequence  # noqa: TC003

from pydantic import BaseModel
from pydantic.config import ConfigDict

from powergrid_backend.game_logic.errors import PlacementError
from powergrid_backend.game_logic.hexgrid import HexGrid  # noqa: TC001
from powergrid_backend.game_logic.state import Blueprint, PowerPlant, PowerPole
from powergrid_backend.shared.enums import BuildableKind
from powergrid_backend.shared.value_objects import (  # noqa: TC001
    CornerCoordinates,
    HexCoordinates,
)


class BuildableOptions(BaseModel):
    """Placement chosen by the player for a new buildable."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    coordinates: HexCoordinates | None = None
    corner_coordinates: CornerCoordinates | None = None


def _player_plants(
    buildables: Sequence[PowerPlant | PowerPole], player_id: str
) -> list[PowerPlant]:
    return [
        item
        for item in buildables
        if isinstance(item, PowerPlant) and item.player_id == player_id
    ]


def _player_poles(
    buildables: Sequence[PowerPlant | PowerPole], player_id: str
) -> list[PowerPole]:
    return [
        item
        for item in buildables
        if isinstance(item, PowerPole) and item.player_id == player_id
    ]


def find_possible_connections(
    buildables: Sequence[PowerPlant | PowerPole],
    corner: CornerCoordinates,
    player_id: str,
) -> tuple[str, ...]:
    """Return ids of *player_id*'s poles one edge away from *corner*."""
    neighbours = corner.adjacent_corners()
    return tuple(
        pole.id
        for pole in _player_poles(buildables, player_id)
        if not pole.is_ghost and pole.corner_coordinates in neighbours
    )


def _validate_plant(
    blueprint: Blueprint,
    player_id: str,
    buildables: Sequence[PowerPlant | PowerPole],
    hex_grid: HexGrid,
    coordinates: HexCoordinates | None,
) -> None:
    if coordinates is None:
        msg = "Power plants need hex coordinates."
        raise PlacementError(msg)
    cell = hex_grid.cell(coordinates)
    if cell is None or cell.region_name is None:
        msg = f"Hex {coordinates.key} is not inside a region."
        raise PlacementError(msg)
    if blueprint.required_region and cell.region_name != blueprint.required_region:
        msg = f"{blueprint.name} must be built in {blueprint.required_region}."
        raise PlacementError(msg)
    if any(
        isinstance(item, PowerPlant) and item.coordinates == coordinates
        for item in buildables
    ):
        msg = f"Hex {coordinates.key} already holds a plant."
        raise PlacementError(msg)

    if not _player_plants(buildables, player_id):
        return
    if not any(
        pole.corner_coordinates.touches(coordinates)
        for pole in _player_poles(buildables, player_id)
    ):
        msg = f"Hex {coordinates.key} is not reached by the player's poles."
        raise PlacementError(msg)


def _validate_pole(
    player_id: str,
    buildables: Sequence[PowerPlant | PowerPole],
    hex_grid: HexGrid,
    corner: CornerCoordinates | None,
) -> None:
    if corner is None:
        msg = "Power poles need corner coordinates."
        raise PlacementError(msg)
    if not any(coordinates in hex_grid for coordinates in corner.adjacent_hexes()):
        msg = f"Corner {corner.key} is off the map."
        raise PlacementError(msg)
    if any(
        isinstance(item, PowerPole) and item.corner_coordinates == corner
        for item in buildables
    ):
        msg = f"Corner {corner.key} already holds a pole."
        raise PlacementError(msg)

    if find_possible_connections(buildables, corner, player_id):
        return
    if any(
        corner.touches(plant.coordinates)
        for plant in _player_plants(buildables, player_id)
    ):
        return
    msg = f"Corner {corner.key} is not next to the player's network."
    raise PlacementError(msg)


def validate_placement(
    *,
    blueprint: Blueprint,
    player_id: str,
    buildables: Sequence[PowerPlant | PowerPole],
    hex_grid: HexGrid,
    options: BuildableOptions,
) -> None:
    """Raise :class:`PlacementError` unless *options* is a legal placement."""
    placed = [item for item in buildables if not item.is_ghost]
    if blueprint.kind is BuildableKind.POWER_PLANT:
        _validate_plant(blueprint, player_id, placed, hex_grid, options.coordinates)
    else:
        _validate_pole(player_id, placed, hex_grid, options.corner_coordinates)


def create_buildable(
    blueprint: Blueprint,
    *,
    buildable_id: str,
    player_id: str,
    options: BuildableOptions,
    connected_to_ids: tuple[str, ...] = (),
) -> PowerPlant | PowerPole:
    """Instantiate a buildable from *blueprint* at the chosen placement."""
    if blueprint.kind is BuildableKind.POWER_POLE:
        if options.corner_coordinates is None:
            msg = "Power poles need corner coordinates."
            raise PlacementError(msg)
        return PowerPole(
            id=buildable_id,
            player_id=player_id,
            blueprint_id=blueprint.id,
            name=blueprint.name,
            corner_coordinates=options.corner_coordinates,
            connected_to_ids=connected_to_ids,
        )

    if options.coordinates is None:
        msg = "Power plants need hex coordinates."
        raise PlacementError(msg)
    return PowerPlant(
        id=buildable_id,
        player_id=player_id,
        blueprint_id=blueprint.id,
        name=blueprint.name,
        coordinates=options.coordinates,
        power_generation_kw=blueprint.power_generation_kw,
        price_per_kwh=blueprint.price_per_kwh,
        fuel_type=blueprint.fuel_type,
        fuel_consumption_per_kwh=blueprint.fuel_consumption_per_kwh,
        max_fuel_storage=blueprint.max_fuel_storage,
        current_fuel_storage=(
            blueprint.initial_fuel_storage if blueprint.fuel_type is not None else None
        ),
    )


__all__ = [
    "BuildableOptions",
    "create_buildable",
    "find_possible_connections",
    "validate_placement",
]
