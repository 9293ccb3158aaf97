"""Tests for commodity trading against plant fuel storage."""

from __future__ import annotations

import pytest

from powergrid_backend.game_logic.configuration import GameConfiguration
from powergrid_backend.game_logic.errors import TradeRejectedError
from powergrid_backend.game_logic.market import (
    buy_commodity,
    get_market_rates,
    initialize_commodity_market,
    sell_commodity,
)
from powergrid_backend.game_logic.state import CommodityMarketState, Player, PowerPlant
from powergrid_backend.shared.enums import CommodityType
from powergrid_backend.shared.value_objects import HexCoordinates


def _market() -> CommodityMarketState:
    return initialize_commodity_market(GameConfiguration().commodities)


def _player(money: float = 100) -> Player:
    return Player(id="p1", name="Alice", number=1, money=money, is_host=True)


def _coal_plant(fuel: float = 50, owner: str = "p1") -> PowerPlant:
    return PowerPlant(
        id="buildable-1",
        player_id=owner,
        blueprint_id="coal-plant-1",
        name="Coal Plant",
        coordinates=HexCoordinates(x=1, z=1),
        power_generation_kw=100,
        price_per_kwh=0.1,
        fuel_type=CommodityType.COAL,
        fuel_consumption_per_kwh=0.1,
        max_fuel_storage=100,
        current_fuel_storage=fuel,
    )


def test_rates_quote_fee_spread() -> None:
    rates = get_market_rates(_market())

    coal = rates[CommodityType.COAL]
    assert coal.exchange_rate == 10
    assert coal.buy_price == pytest.approx(13)
    assert coal.sell_price == pytest.approx(7)


def test_buy_charges_player_and_fills_plant() -> None:
    result = buy_commodity(
        _market(),
        player=_player(),
        plant=_coal_plant(),
        commodity=CommodityType.COAL,
        units=5,
    )

    assert result.total == pytest.approx(65)
    assert result.player.money == pytest.approx(35)
    assert result.plant.current_fuel_storage == pytest.approx(55)
    rate = result.market.commodities[CommodityType.COAL].current_exchange_rate
    assert rate == pytest.approx(11)


def test_buy_rate_is_clamped_to_maximum() -> None:
    result = buy_commodity(
        _market(),
        player=_player(money=10_000),
        plant=_coal_plant(fuel=0),
        commodity=CommodityType.COAL,
        units=100,
    )

    rate = result.market.commodities[CommodityType.COAL].current_exchange_rate
    assert rate == 30


def test_sell_credits_player_and_drains_plant() -> None:
    result = sell_commodity(
        _market(),
        player=_player(),
        plant=_coal_plant(),
        commodity=CommodityType.COAL,
        units=10,
    )

    assert result.player.money == pytest.approx(170)
    assert result.plant.current_fuel_storage == pytest.approx(40)
    rate = result.market.commodities[CommodityType.COAL].current_exchange_rate
    assert rate == pytest.approx(8)


def test_sell_rate_is_clamped_to_minimum() -> None:
    result = sell_commodity(
        _market(),
        player=_player(),
        plant=_coal_plant(fuel=50),
        commodity=CommodityType.COAL,
        units=50,
    )

    rate = result.market.commodities[CommodityType.COAL].current_exchange_rate
    assert rate == 5


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"units": 60}, "cannot store"),
        ({"commodity": CommodityType.OIL}, "does not burn"),
        ({"player": _player(money=10)}, "cannot afford"),
        ({"plant": _coal_plant(owner="p2")}, "not owned"),
    ],
)
def test_buy_rejections(kwargs: dict[str, object], message: str) -> None:
    arguments: dict[str, object] = {
        "player": _player(),
        "plant": _coal_plant(),
        "commodity": CommodityType.COAL,
        "units": 5,
    }
    arguments.update(kwargs)

    with pytest.raises(TradeRejectedError, match=message):
        buy_commodity(_market(), **arguments)  # type: ignore[arg-type]


def test_cannot_sell_more_than_stored() -> None:
    with pytest.raises(TradeRejectedError, match="holds only"):
        sell_commodity(
            _market(),
            player=_player(),
            plant=_coal_plant(fuel=3),
            commodity=CommodityType.COAL,
            units=4,
        )


def test_rejected_trade_leaves_market_untouched() -> None:
    market = _market()

    with pytest.raises(TradeRejectedError):
        buy_commodity(
            market,
            player=_player(money=1),
            plant=_coal_plant(),
            commodity=CommodityType.COAL,
            units=5,
        )

    assert market.commodities[CommodityType.COAL].current_exchange_rate == 10
