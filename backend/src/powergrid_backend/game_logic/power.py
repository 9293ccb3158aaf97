"""Hourly power production, distribution and income resolution.

Plants and poles form an undirected graph: poles link to the poles listed in
``connected_to_ids`` and to every plant standing on one of the three hexes
around their corner. A populated cell draws power from a grid when one of the
grid's poles touches it. Each cell is served cheapest-plant-first (ties by
plant id) until its demand is met or the reachable capacity runs out; demand
that cannot be covered is simply not sold.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Mapping, Sequence  # noqa: TC003

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from powergrid_backend.game_logic.hexgrid import HexGrid  # noqa: TC001
from powergrid_backend.game_logic.state import PowerPlant, PowerPole

logger = logging.getLogger(__name__)


class GridSummary(BaseModel):
    """Supply and demand of one connected component."""

    model_config = ConfigDict(frozen=True)

    plant_ids: tuple[str, ...]
    pole_ids: tuple[str, ...]
    consumer_hex_keys: tuple[str, ...]
    supply_kw: float = Field(..., ge=0)
    demand_kw: float = Field(..., ge=0)
    sold_kw: float = Field(..., ge=0)


class PowerGridResult(BaseModel):
    """Per-tick outcome applied atomically by the state machine."""

    model_config = ConfigDict(frozen=True)

    income_per_player: Mapping[str, float] = Field(default_factory=dict)
    power_sold_per_player_kwh: Mapping[str, float] = Field(default_factory=dict)
    power_sold_by_plant_id: Mapping[str, float] = Field(default_factory=dict)
    fuel_storage_by_plant_id: Mapping[str, float] = Field(default_factory=dict)
    grids: tuple[GridSummary, ...] = Field(default_factory=tuple)


def available_capacity_kw(plant: PowerPlant) -> float:
    """Return how many kWh *plant* can deliver this hour."""
    if not plant.is_fueled:
        return plant.power_generation_kw
    fuel = plant.current_fuel_storage or 0
    if fuel <= 0:
        return 0
    consumption = plant.fuel_consumption_per_kwh or 0
    if consumption <= 0:
        return plant.power_generation_kw
    return min(plant.power_generation_kw, fuel / consumption)


def _build_adjacency(
    plants: Sequence[PowerPlant], poles: Sequence[PowerPole]
) -> dict[str, set[str]]:
    adjacency: dict[str, set[str]] = {item.id: set() for item in (*plants, *poles)}
    for pole in poles:
        for target_id in pole.connected_to_ids:
            if target_id in adjacency and target_id != pole.id:
                adjacency[pole.id].add(target_id)
                adjacency[target_id].add(pole.id)
        for plant in plants:
            if pole.corner_coordinates.touches(plant.coordinates):
                adjacency[pole.id].add(plant.id)
                adjacency[plant.id].add(pole.id)
    return adjacency


def find_components(
    plants: Sequence[PowerPlant], poles: Sequence[PowerPole]
) -> tuple[frozenset[str], ...]:
    """Return connected components of buildable ids in a stable order."""
    adjacency = _build_adjacency(plants, poles)
    seen: set[str] = set()
    components: list[frozenset[str]] = []
    for start in sorted(adjacency):
        if start in seen:
            continue
        component: set[str] = set()
        queue = deque([start])
        seen.add(start)
        while queue:
            node = queue.popleft()
            component.add(node)
            for neighbor in sorted(adjacency[node]):
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
        components.append(frozenset(component))
    return tuple(components)


def resolve_power_grid(
    hex_grid: HexGrid, buildables: Iterable[PowerPlant | PowerPole]
) -> PowerGridResult:
    """Compute one hour of power sales without touching the inputs."""
    items = [item for item in buildables if not item.is_ghost]
    plants = [item for item in items if isinstance(item, PowerPlant)]
    poles = [item for item in items if isinstance(item, PowerPole)]
    plants_by_id = {plant.id: plant for plant in plants}

    components = find_components(plants, poles)
    component_of = {
        node: index for index, component in enumerate(components) for node in component
    }

    remaining = {plant.id: available_capacity_kw(plant) for plant in plants}
    sold_by_plant = dict.fromkeys(plants_by_id, 0.0)
    consumers_by_component: dict[int, list[str]] = {}
    demand_by_component: dict[int, float] = {}

    for cell in hex_grid.populated_cells():
        touching = {
            component_of[pole.id]
            for pole in poles
            if pole.corner_coordinates.touches(cell.coordinates)
        }
        if not touching:
            continue
        for index in touching:
            consumers_by_component.setdefault(index, []).append(cell.coordinates.key)
            demand_by_component[index] = (
                demand_by_component.get(index, 0) + cell.demand_kw
            )

        candidates = sorted(
            (
                plants_by_id[node]
                for index in touching
                for node in components[index]
                if node in plants_by_id
            ),
            key=lambda plant: (plant.price_per_kwh, plant.id),
        )
        demand = cell.demand_kw
        for plant in candidates:
            if demand <= 0:
                break
            take = min(demand, remaining[plant.id])
            if take <= 0:
                continue
            remaining[plant.id] -= take
            sold_by_plant[plant.id] += take
            demand -= take

    income: dict[str, float] = {}
    sold_per_player: dict[str, float] = {}
    fuel_levels: dict[str, float] = {}
    for plant in plants:
        sold = sold_by_plant[plant.id]
        income[plant.player_id] = income.get(plant.player_id, 0) + (
            sold * plant.price_per_kwh
        )
        sold_per_player[plant.player_id] = sold_per_player.get(plant.player_id, 0) + sold
        if plant.is_fueled:
            fuel = plant.current_fuel_storage or 0
            burned = sold * (plant.fuel_consumption_per_kwh or 0)
            fuel_levels[plant.id] = max(0.0, fuel - burned)

    grids = []
    for index, component in enumerate(components):
        component_plants = sorted(node for node in component if node in plants_by_id)
        grids.append(
            GridSummary(
                plant_ids=tuple(component_plants),
                pole_ids=tuple(sorted(component - set(component_plants))),
                consumer_hex_keys=tuple(consumers_by_component.get(index, ())),
                supply_kw=sum(
                    available_capacity_kw(plants_by_id[node])
                    for node in component_plants
                ),
                demand_kw=demand_by_component.get(index, 0),
                sold_kw=sum(sold_by_plant[node] for node in component_plants),
            )
        )

    logger.debug(
        "Resolved %d grids, %.2f kWh sold", len(grids), sum(sold_by_plant.values())
    )
    return PowerGridResult(
        income_per_player=income,
        power_sold_per_player_kwh=sold_per_player,
        power_sold_by_plant_id=sold_by_plant,
        fuel_storage_by_plant_id=fuel_levels,
        grids=tuple(grids),
    )


__all__ = [
    "GridSummary",
    "PowerGridResult",
    "available_capacity_kw",
    "find_components",
    "resolve_power_grid",
]
