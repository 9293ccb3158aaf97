"""Game configuration objects for new matches."""

from __future__ import annotations

from collections.abc import Mapping  # noqa: TC003
from functools import cache
from pathlib import Path  # noqa: TC003

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from powergrid_backend.game_logic.state import Blueprint, CommodityConfig
from powergrid_backend.shared.enums import BuildableKind, CommodityType

DEFAULT_TICK_INTERVAL_SECONDS = 5.0
DEFAULT_SURVEY_DURATION_TICKS = 4


def _default_commodities() -> dict[CommodityType, CommodityConfig]:
    return {
        CommodityType.COAL: CommodityConfig(
            base_exchange_rate=10,
            unit_size=10,
            transaction_fee=0.3,
            price_increment_per_unit=0.2,
            min_exchange_rate=5,
            max_exchange_rate=30,
        ),
        CommodityType.OIL: CommodityConfig(
            base_exchange_rate=20,
            unit_size=5,
            transaction_fee=0.3,
            price_increment_per_unit=0.3,
            min_exchange_rate=10,
            max_exchange_rate=50,
        ),
        CommodityType.GAS: CommodityConfig(
            base_exchange_rate=15,
            unit_size=8,
            transaction_fee=0.3,
            price_increment_per_unit=0.25,
            min_exchange_rate=8,
            max_exchange_rate=40,
        ),
        CommodityType.URANIUM: CommodityConfig(
            base_exchange_rate=50,
            unit_size=1,
            transaction_fee=0.3,
            price_increment_per_unit=0.5,
            min_exchange_rate=25,
            max_exchange_rate=100,
        ),
    }


def _plant(  # noqa: PLR0913
    blueprint_id: str,
    name: str,
    *,
    starting_price: float,
    power_generation_kw: float,
    price_per_kwh: float,
    fuel_type: CommodityType | None = None,
    fuel_consumption_per_kwh: float | None = None,
    max_fuel_storage: float | None = None,
    initial_fuel_storage: float = 0,
) -> Blueprint:
    return Blueprint(
        id=blueprint_id,
        kind=BuildableKind.POWER_PLANT,
        name=name,
        starting_price=starting_price,
        builds_remaining=1,
        power_generation_kw=power_generation_kw,
        price_per_kwh=price_per_kwh,
        fuel_type=fuel_type,
        fuel_consumption_per_kwh=fuel_consumption_per_kwh,
        max_fuel_storage=max_fuel_storage,
        initial_fuel_storage=initial_fuel_storage,
    )


def _default_plant_catalog() -> tuple[Blueprint, ...]:
    """Plant blueprints offered at auction, in offering order."""
    return (
        _plant(
            "coal-plant-1",
            "Coal Plant",
            starting_price=10,
            power_generation_kw=100,
            price_per_kwh=0.1,
            fuel_type=CommodityType.COAL,
            fuel_consumption_per_kwh=0.1,
            max_fuel_storage=100,
            initial_fuel_storage=50,
        ),
        _plant(
            "gas-plant-1",
            "Gas Turbine",
            starting_price=12,
            power_generation_kw=80,
            price_per_kwh=0.12,
            fuel_type=CommodityType.GAS,
            fuel_consumption_per_kwh=0.08,
            max_fuel_storage=80,
            initial_fuel_storage=40,
        ),
        _plant(
            "oil-plant-1",
            "Oil Plant",
            starting_price=15,
            power_generation_kw=120,
            price_per_kwh=0.14,
            fuel_type=CommodityType.OIL,
            fuel_consumption_per_kwh=0.12,
            max_fuel_storage=90,
            initial_fuel_storage=45,
        ),
        _plant(
            "wind-farm-1",
            "Wind Farm",
            starting_price=20,
            power_generation_kw=40,
            price_per_kwh=0.05,
        ),
        _plant(
            "nuclear-plant-1",
            "Nuclear Plant",
            starting_price=30,
            power_generation_kw=400,
            price_per_kwh=0.08,
            fuel_type=CommodityType.URANIUM,
            fuel_consumption_per_kwh=0.01,
            max_fuel_storage=20,
            initial_fuel_storage=10,
        ),
        _plant(
            "hydro-dam-1",
            "Hydro Dam",
            starting_price=25,
            power_generation_kw=150,
            price_per_kwh=0.06,
        ),
    )


class GameDefaults(BaseSettings):
    """Load default game parameters from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="POWERGRID_GAME_",
        extra="ignore",
    )

    starting_money: float = Field(default=100, ge=0)
    tick_interval_seconds: float = Field(default=DEFAULT_TICK_INTERVAL_SECONDS, ge=0)
    power_pole_cost: float = Field(default=1, ge=0)
    power_plant_cost: float = Field(default=0, ge=0)
    survey_duration_ticks: int = Field(default=DEFAULT_SURVEY_DURATION_TICKS, ge=1)
    minimum_bid_increment: float = Field(default=1, gt=0)
    min_auction_blueprints: int = Field(default=3, ge=1)
    map_path: Path | None = None

    def to_config(self) -> GameConfiguration:
        """Convert defaults into an immutable configuration object."""
        return GameConfiguration(
            starting_money=self.starting_money,
            tick_interval_seconds=self.tick_interval_seconds,
            buildable_costs={
                BuildableKind.POWER_POLE: self.power_pole_cost,
                BuildableKind.POWER_PLANT: self.power_plant_cost,
            },
            survey_duration_ticks=self.survey_duration_ticks,
            minimum_bid_increment=self.minimum_bid_increment,
            min_auction_blueprints=self.min_auction_blueprints,
            map_path=self.map_path,
        )


class GameConfiguration(BaseModel):
    """Immutable rules and catalogues applied to a match."""

    model_config = ConfigDict(frozen=True)

    starting_money: float = Field(default=100, ge=0)
    tick_interval_seconds: float = Field(default=DEFAULT_TICK_INTERVAL_SECONDS, ge=0)
    buildable_costs: Mapping[BuildableKind, float] = Field(
        default_factory=lambda: {
            BuildableKind.POWER_POLE: 1,
            BuildableKind.POWER_PLANT: 0,
        }
    )
    survey_duration_ticks: int = Field(default=DEFAULT_SURVEY_DURATION_TICKS, ge=1)
    minimum_bid_increment: float = Field(default=1, gt=0)
    min_auction_blueprints: int = Field(default=3, ge=1)
    map_path: Path | None = None
    plant_catalog: tuple[Blueprint, ...] = Field(default_factory=_default_plant_catalog)
    commodities: Mapping[CommodityType, CommodityConfig] = Field(
        default_factory=_default_commodities
    )

    def cost_of(self, kind: BuildableKind) -> float:
        """Return the build cost for a structure of *kind*."""
        return self.buildable_costs.get(kind, 0)

    def pole_blueprint_for(self, player_id: str) -> Blueprint:
        """Return the unlimited pole blueprint every player starts with."""
        return Blueprint(
            id=f"{player_id}-power-pole",
            kind=BuildableKind.POWER_POLE,
            name="Power Pole",
        )

    def auction_lot(self, player_count: int) -> tuple[Blueprint, ...]:
        """Return the blueprints offered in an auction for *player_count* players."""
        return self.plant_catalog[: max(player_count, self.min_auction_blueprints)]


@cache
def get_default_game_configuration() -> GameConfiguration:
    """Return the cached default game configuration."""
    return GameDefaults().to_config()


__all__ = [
    "DEFAULT_SURVEY_DURATION_TICKS",
    "DEFAULT_TICK_INTERVAL_SECONDS",
    "GameConfiguration",
    "GameDefaults",
    "get_default_game_configuration",
]
