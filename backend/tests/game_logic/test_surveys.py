"""Tests for private hex surveys."""

from __future__ import annotations

import pytest

from powergrid_backend.game_logic.errors import SurveyRejectedError
from powergrid_backend.game_logic.hexgrid import load_default_hex_grid
from powergrid_backend.game_logic.state import HexCellResource, PlayerPrivateState
from powergrid_backend.game_logic.surveys import (
    complete_surveys,
    precompute_hex_resources,
    start_survey,
)
from powergrid_backend.shared.value_objects import HexCoordinates

TARGET = HexCoordinates(x=2, z=2)


def test_resources_are_reproducible_per_seed() -> None:
    grid = load_default_hex_grid()

    first = precompute_hex_resources(grid, 99)
    second = precompute_hex_resources(grid, 99)

    assert first == second
    assert set(first) == {cell.coordinates.key for cell in grid.cells}


def test_start_survey_records_start_tick() -> None:
    private = start_survey(
        PlayerPrivateState(),
        hex_grid=load_default_hex_grid(),
        coordinates=TARGET,
        current_tick=3,
    )

    survey = private.active_survey
    assert survey is not None
    assert survey.survey_start_tick == 3
    assert not survey.is_complete


def test_only_one_survey_at_a_time() -> None:
    grid = load_default_hex_grid()
    private = start_survey(
        PlayerPrivateState(), hex_grid=grid, coordinates=TARGET, current_tick=0
    )

    with pytest.raises(SurveyRejectedError, match="already in progress"):
        start_survey(
            private,
            hex_grid=grid,
            coordinates=HexCoordinates(x=3, z=2),
            current_tick=0,
        )


def test_off_map_survey_is_rejected() -> None:
    with pytest.raises(SurveyRejectedError, match="off the map"):
        start_survey(
            PlayerPrivateState(),
            hex_grid=load_default_hex_grid(),
            coordinates=HexCoordinates(x=40, z=40),
            current_tick=0,
        )


def test_survey_completes_after_duration() -> None:
    grid = load_default_hex_grid()
    private = start_survey(
        PlayerPrivateState(), hex_grid=grid, coordinates=TARGET, current_tick=1
    )
    deposit = HexCellResource(resource_type="coal", amount=42)
    resources = {TARGET.key: deposit}

    pending, completed = complete_surveys(
        {"p1": private}, resources=resources, current_tick=4, duration_ticks=4
    )
    assert completed == []
    assert pending["p1"].active_survey is not None

    finished, completed = complete_surveys(
        pending, resources=resources, current_tick=5, duration_ticks=4
    )
    assert [player_id for player_id, _ in completed] == ["p1"]
    result = finished["p1"].survey_results_by_hex[TARGET.key]
    assert result.is_complete
    assert result.resource == deposit
    assert finished["p1"].active_survey is None

    with pytest.raises(SurveyRejectedError, match="already been surveyed"):
        start_survey(
            finished["p1"], hex_grid=grid, coordinates=TARGET, current_tick=6
        )
