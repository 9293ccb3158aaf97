"""Commands accepted by the game state machine."""

# ruff: noqa: TC001

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter
from pydantic.config import ConfigDict

from powergrid_backend.game_logic.buildables import BuildableOptions
from powergrid_backend.shared.enums import CommodityType
from powergrid_backend.shared.value_objects import HexCoordinates


class Caller(BaseModel):
    """Resolved identity of whoever sent a command."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    kind: Literal["client", "service"] = "client"


SERVICE_CALLER = Caller(id="game-service", kind="service")


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class JoinGameCommand(_Command):
    """Take a seat in the lobby."""

    type: Literal["JOIN_GAME"] = "JOIN_GAME"
    name: str = Field(..., min_length=1, max_length=64)


class StartGameCommand(_Command):
    """Host-only: leave the lobby and open the first auction."""

    type: Literal["START_GAME"] = "START_GAME"


class AddBuildableCommand(_Command):
    """Build a structure from one of the caller's blueprints."""

    type: Literal["ADD_BUILDABLE"] = "ADD_BUILDABLE"
    blueprint_id: str = Field(..., min_length=1)
    options: BuildableOptions = Field(default_factory=BuildableOptions)


class TickCommand(_Command):
    """Advance simulated time by one hour."""

    type: Literal["TICK"] = "TICK"


class PauseCommand(_Command):
    type: Literal["PAUSE"] = "PAUSE"


class UnpauseCommand(_Command):
    type: Literal["UNPAUSE"] = "UNPAUSE"


class InitiateBidCommand(_Command):
    """Open bidding on an auctioned blueprint."""

    type: Literal["INITIATE_BID"] = "INITIATE_BID"
    blueprint_id: str = Field(..., min_length=1)


class PassAuctionCommand(_Command):
    type: Literal["PASS_AUCTION"] = "PASS_AUCTION"


class AuctionPlaceBidCommand(_Command):
    type: Literal["AUCTION_PLACE_BID"] = "AUCTION_PLACE_BID"
    amount: float = Field(..., gt=0)


class AuctionPassBidCommand(_Command):
    type: Literal["AUCTION_PASS_BID"] = "AUCTION_PASS_BID"


class BuyCommodityCommand(_Command):
    """Buy fuel into one of the caller's plants."""

    type: Literal["BUY_COMMODITY"] = "BUY_COMMODITY"
    fuel_type: CommodityType
    units: float = Field(..., gt=0)
    power_plant_id: str = Field(..., min_length=1)


class SellCommodityCommand(_Command):
    """Sell fuel out of one of the caller's plants."""

    type: Literal["SELL_COMMODITY"] = "SELL_COMMODITY"
    fuel_type: CommodityType
    units: float = Field(..., gt=0)
    power_plant_id: str = Field(..., min_length=1)


class SurveyHexTileCommand(_Command):
    """Start a private survey of a hex cell."""

    type: Literal["SURVEY_HEX_TILE"] = "SURVEY_HEX_TILE"
    coordinates: HexCoordinates


ClientCommand = Annotated[
    JoinGameCommand
    | StartGameCommand
    | AddBuildableCommand
    | PauseCommand
    | UnpauseCommand
    | InitiateBidCommand
    | PassAuctionCommand
    | AuctionPlaceBidCommand
    | AuctionPassBidCommand
    | BuyCommodityCommand
    | SellCommodityCommand
    | SurveyHexTileCommand,
    Field(discriminator="type"),
]

GameCommand = Annotated[
    JoinGameCommand
    | StartGameCommand
    | AddBuildableCommand
    | TickCommand
    | PauseCommand
    | UnpauseCommand
    | InitiateBidCommand
    | PassAuctionCommand
    | AuctionPlaceBidCommand
    | AuctionPassBidCommand
    | BuyCommodityCommand
    | SellCommodityCommand
    | SurveyHexTileCommand,
    Field(discriminator="type"),
]

CLIENT_COMMAND_ADAPTER = TypeAdapter(ClientCommand)
GAME_COMMAND_ADAPTER = TypeAdapter(GameCommand)


__all__ = [
    "CLIENT_COMMAND_ADAPTER",
    "GAME_COMMAND_ADAPTER",
    "SERVICE_CALLER",
    "AddBuildableCommand",
    "AuctionPassBidCommand",
    "AuctionPlaceBidCommand",
    "BuyCommodityCommand",
    "Caller",
    "ClientCommand",
    "GameCommand",
    "InitiateBidCommand",
    "JoinGameCommand",
    "PassAuctionCommand",
    "PauseCommand",
    "SellCommodityCommand",
    "StartGameCommand",
    "SurveyHexTileCommand",
    "TickCommand",
    "UnpauseCommand",
]
