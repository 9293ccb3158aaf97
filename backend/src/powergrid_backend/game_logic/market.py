"""Commodity exchange-rate model.

Each commodity keeps a single exchange rate inside ``[min, max]``. Buying
pushes the rate up by ``increment * units`` and selling pulls it down by the
same amount; both moves are clamped. Players buy at ``rate * (1 + fee)`` and
sell at ``rate * (1 - fee)``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping  # noqa: TC003

from pydantic import BaseModel
from pydantic.config import ConfigDict

from powergrid_backend.game_logic.errors import TradeRejectedError
from powergrid_backend.game_logic.state import (
    CommodityConfig,
    CommodityMarketState,
    CommodityState,
    Player,
    PowerPlant,
)
from powergrid_backend.shared.enums import CommodityType

logger = logging.getLogger(__name__)


class MarketRate(BaseModel):
    """Quoted prices of a commodity at the current exchange rate."""

    model_config = ConfigDict(frozen=True)

    commodity: CommodityType
    exchange_rate: float
    buy_price: float
    sell_price: float
    unit_size: float


class TradeResult(BaseModel):
    """Outcome of an executed commodity trade."""

    model_config = ConfigDict(frozen=True)

    market: CommodityMarketState
    player: Player
    plant: PowerPlant
    units: float
    unit_price: float
    total: float


def initialize_commodity_market(
    configs: Mapping[CommodityType, CommodityConfig],
) -> CommodityMarketState:
    """Create a market with every commodity at its base exchange rate."""
    return CommodityMarketState(
        commodities={
            commodity: CommodityState(
                config=config, current_exchange_rate=config.base_exchange_rate
            )
            for commodity, config in configs.items()
        }
    )


def quote(state: CommodityState, commodity: CommodityType) -> MarketRate:
    """Return the buy/sell spread around *state*'s current exchange rate."""
    rate = state.current_exchange_rate
    fee = state.config.transaction_fee
    return MarketRate(
        commodity=commodity,
        exchange_rate=rate,
        buy_price=rate * (1 + fee),
        sell_price=rate * (1 - fee),
        unit_size=state.config.unit_size,
    )


def get_market_rates(market: CommodityMarketState) -> dict[CommodityType, MarketRate]:
    """Return current quotes for every commodity on *market*."""
    return {
        commodity: quote(state, commodity)
        for commodity, state in market.commodities.items()
    }


def _commodity_state(
    market: CommodityMarketState, commodity: CommodityType
) -> CommodityState:
    state = market.commodities.get(commodity)
    if state is None:
        msg = f"Commodity {commodity} is not traded."
        raise TradeRejectedError(msg)
    return state


def _check_plant(player: Player, plant: PowerPlant, commodity: CommodityType) -> None:
    if plant.player_id != player.id:
        msg = f"Plant {plant.id} is not owned by {player.id}."
        raise TradeRejectedError(msg)
    if plant.fuel_type != commodity:
        msg = f"Plant {plant.id} does not burn {commodity}."
        raise TradeRejectedError(msg)


def _with_rate(
    market: CommodityMarketState, commodity: CommodityType, rate: float
) -> CommodityMarketState:
    commodities = dict(market.commodities)
    state = commodities[commodity]
    commodities[commodity] = state.model_copy(
        update={"current_exchange_rate": state.clamp(rate)}
    )
    return market.model_copy(update={"commodities": commodities})


def buy_commodity(
    market: CommodityMarketState,
    *,
    player: Player,
    plant: PowerPlant,
    commodity: CommodityType,
    units: float,
) -> TradeResult:
    """Buy *units* of fuel into *plant*, charging *player* at the buy price."""
    if units <= 0:
        msg = "Units must be positive."
        raise TradeRejectedError(msg)
    _check_plant(player, plant, commodity)
    state = _commodity_state(market, commodity)

    current_fuel = plant.current_fuel_storage or 0
    capacity = plant.max_fuel_storage or 0
    if current_fuel + units > capacity:
        msg = f"Plant {plant.id} cannot store {units} more units."
        raise TradeRejectedError(msg)

    price = quote(state, commodity).buy_price
    total = units * price
    if total > player.money:
        msg = f"Player {player.id} cannot afford {total}."
        raise TradeRejectedError(msg)

    increment = state.config.price_increment_per_unit
    updated_market = _with_rate(
        market, commodity, state.current_exchange_rate + increment * units
    )
    logger.debug(
        "Player %s bought %s %s at %.4f", player.id, units, commodity, price
    )
    return TradeResult(
        market=updated_market,
        player=player.debit(total),
        plant=plant.with_fuel(current_fuel + units),
        units=units,
        unit_price=price,
        total=total,
    )


def sell_commodity(
    market: CommodityMarketState,
    *,
    player: Player,
    plant: PowerPlant,
    commodity: CommodityType,
    units: float,
) -> TradeResult:
    """Sell *units* of fuel out of *plant*, paying *player* at the sell price."""
    if units <= 0:
        msg = "Units must be positive."
        raise TradeRejectedError(msg)
    _check_plant(player, plant, commodity)
    state = _commodity_state(market, commodity)

    current_fuel = plant.current_fuel_storage or 0
    if units > current_fuel:
        msg = f"Plant {plant.id} holds only {current_fuel} units."
        raise TradeRejectedError(msg)

    price = quote(state, commodity).sell_price
    total = units * price
    increment = state.config.price_increment_per_unit
    updated_market = _with_rate(
        market, commodity, state.current_exchange_rate - increment * units
    )
    logger.debug("Player %s sold %s %s at %.4f", player.id, units, commodity, price)
    return TradeResult(
        market=updated_market,
        player=player.credit(total),
        plant=plant.with_fuel(current_fuel - units),
        units=units,
        unit_price=price,
        total=total,
    )


__all__ = [
    "MarketRate",
    "TradeResult",
    "buy_commodity",
    "get_market_rates",
    "initialize_commodity_market",
    "quote",
    "sell_commodity",
]
