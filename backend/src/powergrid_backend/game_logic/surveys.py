"""Hex surveys revealing natural resources to a single player."""

from __future__ import annotations

import logging
from collections.abc import Mapping  # noqa: TC003

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from powergrid_backend.game_logic.errors import SurveyRejectedError
from powergrid_backend.game_logic.hexgrid import HexGrid  # noqa: TC001
from powergrid_backend.game_logic.state import (
    HexCellResource,
    PlayerPrivateState,
    SurveyResult,
)
from powergrid_backend.shared.enums import CommodityType, TerrainType
from powergrid_backend.shared.rng import DeterministicRandomService
from powergrid_backend.shared.value_objects import HexCoordinates  # noqa: TC001

logger = logging.getLogger(__name__)


class ResourceOption(BaseModel):
    """One possible deposit type for a terrain."""

    model_config = ConfigDict(frozen=True)

    resource_type: CommodityType
    weight: float = Field(..., gt=0)
    min_amount: int = Field(..., ge=0)
    max_amount: int = Field(..., ge=0)


class TerrainResourceProfile(BaseModel):
    """Likelihood and composition of deposits under a terrain type."""

    model_config = ConfigDict(frozen=True)

    probability: float = Field(..., ge=0, le=1)
    options: tuple[ResourceOption, ...]


RESOURCE_PROFILES: dict[TerrainType, TerrainResourceProfile] = {
    TerrainType.MOUNTAINS: TerrainResourceProfile(
        probability=0.6,
        options=(
            ResourceOption(
                resource_type=CommodityType.COAL, weight=0.7, min_amount=40, max_amount=150
            ),
            ResourceOption(
                resource_type=CommodityType.URANIUM,
                weight=0.3,
                min_amount=10,
                max_amount=50,
            ),
        ),
    ),
    TerrainType.FOREST: TerrainResourceProfile(
        probability=0.4,
        options=(
            ResourceOption(
                resource_type=CommodityType.COAL, weight=1.0, min_amount=30, max_amount=100
            ),
        ),
    ),
    TerrainType.PLAINS: TerrainResourceProfile(
        probability=0.3,
        options=(
            ResourceOption(
                resource_type=CommodityType.OIL, weight=0.6, min_amount=25, max_amount=90
            ),
            ResourceOption(
                resource_type=CommodityType.GAS, weight=0.4, min_amount=35, max_amount=120
            ),
        ),
    ),
    TerrainType.DESERT: TerrainResourceProfile(
        probability=0.2,
        options=(
            ResourceOption(
                resource_type=CommodityType.OIL, weight=0.7, min_amount=20, max_amount=80
            ),
            ResourceOption(
                resource_type=CommodityType.URANIUM,
                weight=0.3,
                min_amount=5,
                max_amount=30,
            ),
        ),
    ),
    TerrainType.WATER: TerrainResourceProfile(
        probability=0.1,
        options=(
            ResourceOption(
                resource_type=CommodityType.GAS, weight=0.8, min_amount=50, max_amount=180
            ),
            ResourceOption(
                resource_type=CommodityType.OIL, weight=0.2, min_amount=30, max_amount=100
            ),
        ),
    ),
}


def precompute_hex_resources(
    hex_grid: HexGrid, random_seed: int
) -> dict[str, HexCellResource | None]:
    """Roll the deposit under every cell once, reproducibly from *random_seed*."""
    rng = DeterministicRandomService(f"resources-{random_seed}")
    resources: dict[str, HexCellResource | None] = {}
    ordered = sorted(
        hex_grid.cells, key=lambda cell: (cell.coordinates.z, cell.coordinates.x)
    )
    for cell in ordered:
        profile = RESOURCE_PROFILES[cell.terrain_type]
        if rng.random() >= profile.probability:
            resources[cell.coordinates.key] = None
            continue
        option = rng.weighted_choice(
            profile.options, [option.weight for option in profile.options]
        )
        resources[cell.coordinates.key] = HexCellResource(
            resource_type=option.resource_type,
            amount=rng.randint(option.min_amount, option.max_amount),
        )
    return resources


def start_survey(
    private: PlayerPrivateState,
    *,
    hex_grid: HexGrid,
    coordinates: HexCoordinates,
    current_tick: int,
) -> PlayerPrivateState:
    """Begin surveying *coordinates* for a player."""
    if coordinates not in hex_grid:
        msg = f"Hex {coordinates.key} is off the map."
        raise SurveyRejectedError(msg)
    if private.active_survey is not None:
        msg = "A survey is already in progress."
        raise SurveyRejectedError(msg)
    if coordinates.key in private.survey_results_by_hex:
        msg = f"Hex {coordinates.key} has already been surveyed."
        raise SurveyRejectedError(msg)
    results = dict(private.survey_results_by_hex)
    results[coordinates.key] = SurveyResult(
        coordinates=coordinates, survey_start_tick=current_tick
    )
    return private.model_copy(update={"survey_results_by_hex": results})


def complete_surveys(
    private_by_player_id: Mapping[str, PlayerPrivateState],
    *,
    resources: Mapping[str, HexCellResource | None],
    current_tick: int,
    duration_ticks: int,
) -> tuple[dict[str, PlayerPrivateState], list[tuple[str, SurveyResult]]]:
    """Finish every survey that has run for *duration_ticks*.

    Returns the updated private states and the ``(player_id, result)`` pairs
    completed on this tick.
    """
    updated: dict[str, PlayerPrivateState] = {}
    completed: list[tuple[str, SurveyResult]] = []
    for player_id, private in private_by_player_id.items():
        survey = private.active_survey
        if survey is None or current_tick - survey.survey_start_tick < duration_ticks:
            updated[player_id] = private
            continue
        key = survey.coordinates.key
        result = survey.model_copy(
            update={"is_complete": True, "resource": resources.get(key)}
        )
        results = dict(private.survey_results_by_hex)
        results[key] = result
        updated[player_id] = private.model_copy(
            update={"survey_results_by_hex": results}
        )
        completed.append((player_id, result))
        logger.debug("Player %s completed survey of %s", player_id, key)
    return updated, completed


__all__ = [
    "RESOURCE_PROFILES",
    "ResourceOption",
    "TerrainResourceProfile",
    "complete_surveys",
    "precompute_hex_resources",
    "start_survey",
]
