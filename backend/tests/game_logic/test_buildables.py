"""Tests for buildable placement rules."""

from __future__ import annotations

import pytest

from powergrid_backend.game_logic.buildables import (
    BuildableOptions,
    create_buildable,
    find_possible_connections,
    validate_placement,
)
from powergrid_backend.game_logic.errors import PlacementError
from powergrid_backend.game_logic.hexgrid import HexCell, HexGrid
from powergrid_backend.game_logic.state import Blueprint, PowerPlant, PowerPole
from powergrid_backend.shared.enums import BuildableKind, CornerPosition, TerrainType
from powergrid_backend.shared.value_objects import CornerCoordinates, HexCoordinates

GRID = HexGrid(
    cells=(
        HexCell(coordinates=HexCoordinates(x=1, z=0), region_name="West"),
        HexCell(coordinates=HexCoordinates(x=2, z=0), region_name="West"),
        HexCell(coordinates=HexCoordinates(x=1, z=1), region_name="West"),
        HexCell(coordinates=HexCoordinates(x=2, z=1), region_name="East"),
        HexCell(
            coordinates=HexCoordinates(x=0, z=1),
            region_name=None,
            terrain_type=TerrainType.WATER,
        ),
    )
)

PLANT_BLUEPRINT = Blueprint(
    id="wind-farm-1",
    kind=BuildableKind.POWER_PLANT,
    name="Wind Farm",
    starting_price=20,
    builds_remaining=1,
    power_generation_kw=40,
    price_per_kwh=0.05,
)
POLE_BLUEPRINT = Blueprint(id="p1-power-pole", kind=BuildableKind.POWER_POLE, name="Pole")


def _hex(x: int, z: int) -> HexCoordinates:
    return HexCoordinates(x=x, z=z)


def _corner(x: int, z: int, position: CornerPosition) -> CornerCoordinates:
    return CornerCoordinates(hex=_hex(x, z), position=position)


def _place(
    blueprint: Blueprint,
    options: BuildableOptions,
    *,
    buildable_id: str,
    existing: tuple[PowerPlant | PowerPole, ...] = (),
    player_id: str = "p1",
) -> PowerPlant | PowerPole:
    validate_placement(
        blueprint=blueprint,
        player_id=player_id,
        buildables=existing,
        hex_grid=GRID,
        options=options,
    )
    connections: tuple[str, ...] = ()
    if options.corner_coordinates is not None:
        connections = find_possible_connections(
            existing, options.corner_coordinates, player_id
        )
    return create_buildable(
        blueprint,
        buildable_id=buildable_id,
        player_id=player_id,
        options=options,
        connected_to_ids=connections,
    )


def test_first_plant_can_go_anywhere_in_a_region() -> None:
    plant = _place(
        PLANT_BLUEPRINT, BuildableOptions(coordinates=_hex(1, 1)), buildable_id="b-1"
    )

    assert isinstance(plant, PowerPlant)
    assert plant.power_generation_kw == 40
    assert plant.current_fuel_storage is None


def test_plant_outside_regions_is_rejected() -> None:
    with pytest.raises(PlacementError, match="not inside a region"):
        _place(
            PLANT_BLUEPRINT,
            BuildableOptions(coordinates=_hex(0, 1)),
            buildable_id="b-1",
        )


def test_required_region_is_enforced() -> None:
    regional = PLANT_BLUEPRINT.model_copy(update={"required_region": "West"})

    with pytest.raises(PlacementError, match="must be built in West"):
        _place(regional, BuildableOptions(coordinates=_hex(2, 1)), buildable_id="b-1")


def test_pole_extends_network_and_links_neighbours() -> None:
    plant = _place(
        PLANT_BLUEPRINT, BuildableOptions(coordinates=_hex(1, 1)), buildable_id="b-1"
    )
    first = _place(
        POLE_BLUEPRINT,
        BuildableOptions(corner_coordinates=_corner(1, 1, CornerPosition.NORTH)),
        buildable_id="b-2",
        existing=(plant,),
    )
    second = _place(
        POLE_BLUEPRINT,
        BuildableOptions(corner_coordinates=_corner(1, 0, CornerPosition.SOUTH)),
        buildable_id="b-3",
        existing=(plant, first),
    )

    assert isinstance(second, PowerPole)
    assert second.connected_to_ids == ("b-2",)


def test_pole_away_from_network_is_rejected() -> None:
    with pytest.raises(PlacementError, match="not next to"):
        _place(
            POLE_BLUEPRINT,
            BuildableOptions(corner_coordinates=_corner(1, 1, CornerPosition.NORTH)),
            buildable_id="b-1",
        )


def test_occupied_corner_is_rejected() -> None:
    plant = _place(
        PLANT_BLUEPRINT, BuildableOptions(coordinates=_hex(1, 1)), buildable_id="b-1"
    )
    corner = _corner(1, 1, CornerPosition.NORTH)
    pole = _place(
        POLE_BLUEPRINT,
        BuildableOptions(corner_coordinates=corner),
        buildable_id="b-2",
        existing=(plant,),
    )

    with pytest.raises(PlacementError, match="already holds a pole"):
        _place(
            POLE_BLUEPRINT,
            BuildableOptions(corner_coordinates=corner),
            buildable_id="b-3",
            existing=(plant, pole),
        )


def test_second_plant_must_touch_own_poles() -> None:
    plant = _place(
        PLANT_BLUEPRINT, BuildableOptions(coordinates=_hex(1, 1)), buildable_id="b-1"
    )

    with pytest.raises(PlacementError, match="not reached"):
        _place(
            PLANT_BLUEPRINT,
            BuildableOptions(coordinates=_hex(2, 1)),
            buildable_id="b-2",
            existing=(plant,),
        )

    pole = _place(
        POLE_BLUEPRINT,
        BuildableOptions(corner_coordinates=_corner(1, 1, CornerPosition.NORTH)),
        buildable_id="b-3",
        existing=(plant,),
    )
    second = _place(
        PLANT_BLUEPRINT,
        BuildableOptions(coordinates=_hex(2, 0)),
        buildable_id="b-4",
        existing=(plant, pole),
    )
    assert isinstance(second, PowerPlant)


def test_rival_poles_are_not_connection_candidates() -> None:
    rival_plant = _place(
        PLANT_BLUEPRINT,
        BuildableOptions(coordinates=_hex(1, 0)),
        buildable_id="b-1",
        player_id="p2",
    )
    rival_pole = _place(
        POLE_BLUEPRINT,
        BuildableOptions(corner_coordinates=_corner(1, 0, CornerPosition.SOUTH)),
        buildable_id="b-2",
        existing=(rival_plant,),
        player_id="p2",
    )

    connections = find_possible_connections(
        (rival_plant, rival_pole), _corner(1, 1, CornerPosition.NORTH), "p1"
    )

    assert connections == ()


def test_options_reject_unknown_fields() -> None:
    with pytest.raises(ValueError, match="Extra inputs"):
        BuildableOptions.model_validate({"coordinates": {"x": 1, "z": 1}, "foo": 1})
