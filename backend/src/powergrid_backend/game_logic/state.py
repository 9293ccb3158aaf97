"""Immutable game state containers used by the game logic layer.

Every model here is frozen; transitions produce new instances through
``model_copy(update=...)`` and never mutate a snapshot that has been handed out.
"""

from __future__ import annotations

from collections.abc import Mapping  # noqa: TC003
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from powergrid_backend.game_logic.errors import GameInvariantError
from powergrid_backend.game_logic.hexgrid import HexGrid  # noqa: TC001
from powergrid_backend.shared.enums import BuildableKind, CommodityType
from powergrid_backend.shared.value_objects import (  # noqa: TC001
    CornerCoordinates,
    HexCoordinates,
)


class GamePhase(StrEnum):
    """Top-level phases of a match, including the auction sub-phases."""

    LOBBY = "lobby"
    AUCTION_INITIATING_BID = "auction:initiatingBid"
    AUCTION_BIDDING_ON_BLUEPRINT = "auction:biddingOnBlueprint"
    ACTIVE = "active"
    PAUSED = "paused"

    @property
    def is_auction(self) -> bool:
        """Return ``True`` for either auction sub-phase."""
        return self in AUCTION_PHASES


AUCTION_PHASES: frozenset[GamePhase] = frozenset(
    {GamePhase.AUCTION_INITIATING_BID, GamePhase.AUCTION_BIDDING_ON_BLUEPRINT}
)


class Blueprint(BaseModel):
    """An unbuilt design that can be turned into a buildable."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    kind: BuildableKind
    name: str
    starting_price: float = Field(default=0, ge=0)
    builds_remaining: int | None = Field(default=None, ge=0)
    required_region: str | None = None
    power_generation_kw: float = Field(default=0, ge=0)
    price_per_kwh: float = Field(default=0, ge=0)
    fuel_type: CommodityType | None = None
    fuel_consumption_per_kwh: float | None = Field(default=None, ge=0)
    max_fuel_storage: float | None = Field(default=None, ge=0)
    initial_fuel_storage: float = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _validate_fuel(self) -> Blueprint:
        """Fueled plants must declare consumption and storage."""
        if self.fuel_type is not None and (
            self.fuel_consumption_per_kwh is None or self.max_fuel_storage is None
        ):
            msg = f"Fueled blueprint {self.id} must declare consumption and storage."
            raise ValueError(msg)
        if (
            self.max_fuel_storage is not None
            and self.initial_fuel_storage > self.max_fuel_storage
        ):
            msg = f"Blueprint {self.id} starts with more fuel than it can store."
            raise ValueError(msg)
        return self

    def consume_build(self) -> Blueprint | None:
        """Return the blueprint after one build, or ``None`` once exhausted."""
        if self.builds_remaining is None:
            return self
        remaining = self.builds_remaining - 1
        if remaining <= 0:
            return None
        return self.model_copy(update={"builds_remaining": remaining})


class Player(BaseModel):
    """A company taking part in the match."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    number: int = Field(..., ge=1)
    money: float = Field(..., ge=0)
    power_sold_kwh: float = Field(default=0, ge=0)
    is_host: bool = False
    blueprints_by_id: Mapping[str, Blueprint] = Field(default_factory=dict)

    def credit(self, amount: float) -> Player:
        """Increase money by *amount* and return a new player instance."""
        return self.model_copy(update={"money": self.money + amount})

    def debit(self, amount: float) -> Player:
        """Decrease money by *amount* and return a new player instance."""
        if amount > self.money:
            msg = f"Player {self.id} cannot pay {amount} with {self.money}."
            raise ValueError(msg)
        return self.model_copy(update={"money": self.money - amount})

    def with_blueprint(self, blueprint: Blueprint) -> Player:
        """Return a player owning *blueprint*."""
        blueprints = dict(self.blueprints_by_id)
        blueprints[blueprint.id] = blueprint
        return self.model_copy(update={"blueprints_by_id": blueprints})

    def without_blueprint(self, blueprint_id: str) -> Player:
        """Return a player no longer owning *blueprint_id*."""
        blueprints = {
            key: value
            for key, value in self.blueprints_by_id.items()
            if key != blueprint_id
        }
        return self.model_copy(update={"blueprints_by_id": blueprints})


class _BuildableBase(BaseModel):
    """Identity and ownership shared by every placed structure."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    player_id: str = Field(..., min_length=1)
    blueprint_id: str
    name: str
    is_ghost: bool = False


class PowerPlant(_BuildableBase):
    """A generating structure placed on a hex cell."""

    type: Literal["power_plant"] = "power_plant"
    coordinates: HexCoordinates
    power_generation_kw: float = Field(..., ge=0)
    price_per_kwh: float = Field(..., ge=0)
    fuel_type: CommodityType | None = None
    fuel_consumption_per_kwh: float | None = Field(default=None, ge=0)
    max_fuel_storage: float | None = Field(default=None, ge=0)
    current_fuel_storage: float | None = Field(default=None, ge=0)

    @property
    def is_fueled(self) -> bool:
        """Return ``True`` when the plant burns a commodity."""
        return self.fuel_type is not None

    def with_fuel(self, amount: float) -> PowerPlant:
        """Return the plant holding *amount* units of fuel."""
        return self.model_copy(update={"current_fuel_storage": amount})


class PowerPole(_BuildableBase):
    """A transmission pole placed on a hex corner."""

    type: Literal["power_pole"] = "power_pole"
    corner_coordinates: CornerCoordinates
    connected_to_ids: tuple[str, ...] = Field(default_factory=tuple)

    def connect(self, buildable_id: str) -> PowerPole:
        """Return the pole with an extra link to *buildable_id*."""
        if buildable_id in self.connected_to_ids:
            return self
        return self.model_copy(
            update={"connected_to_ids": (*self.connected_to_ids, buildable_id)}
        )


Buildable = Annotated[PowerPlant | PowerPole, Field(discriminator="type")]


class Bid(BaseModel):
    """A single entry in the bidding cycle for a blueprint."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    amount: float | None = Field(default=None, ge=0)
    passed: bool = False

    @model_validator(mode="after")
    def _validate_amount(self) -> Bid:
        """Placed bids carry an amount, passed bids do not."""
        if self.passed == (self.amount is not None):
            msg = "A bid must either carry an amount or be a pass."
            raise ValueError(msg)
        return self


class CurrentBlueprint(BaseModel):
    """The blueprint under active bidding."""

    model_config = ConfigDict(frozen=True)

    blueprint_id: str
    bids: tuple[Bid, ...] = Field(default_factory=tuple)

    def add_bid(self, bid: Bid) -> CurrentBlueprint:
        """Return the lot with *bid* appended."""
        return self.model_copy(update={"bids": (*self.bids, bid)})


class Purchase(BaseModel):
    """A resolved auction lot."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    blueprint_id: str
    price: float = Field(..., ge=0)


class Auction(BaseModel):
    """State of an ongoing blueprint auction."""

    model_config = ConfigDict(frozen=True)

    available_blueprint_ids: tuple[str, ...] = Field(default_factory=tuple)
    blueprints_by_id: Mapping[str, Blueprint] = Field(default_factory=dict)
    current_blueprint: CurrentBlueprint | None = None
    passed_player_ids: tuple[str, ...] = Field(default_factory=tuple)
    purchases: tuple[Purchase, ...] = Field(default_factory=tuple)
    is_passing_allowed: bool = True

    @property
    def purchased_player_ids(self) -> frozenset[str]:
        """Return the players who already won a blueprint in this auction."""
        return frozenset(purchase.player_id for purchase in self.purchases)


class CommodityConfig(BaseModel):
    """Static pricing parameters of a commodity."""

    model_config = ConfigDict(frozen=True)

    base_exchange_rate: float = Field(..., gt=0)
    unit_size: float = Field(..., gt=0)
    transaction_fee: float = Field(..., ge=0, lt=1)
    price_increment_per_unit: float = Field(..., ge=0)
    min_exchange_rate: float = Field(..., gt=0)
    max_exchange_rate: float = Field(..., gt=0)

    @model_validator(mode="after")
    def _validate_range(self) -> CommodityConfig:
        """Ensure the base rate sits inside the configured range."""
        if not (
            self.min_exchange_rate <= self.base_exchange_rate <= self.max_exchange_rate
        ):
            msg = "Base exchange rate must lie within [min, max]."
            raise ValueError(msg)
        return self


class CommodityState(BaseModel):
    """Current exchange rate of a commodity."""

    model_config = ConfigDict(frozen=True)

    config: CommodityConfig
    current_exchange_rate: float

    def clamp(self, rate: float) -> float:
        """Clamp *rate* to the configured range."""
        return min(
            self.config.max_exchange_rate, max(self.config.min_exchange_rate, rate)
        )


class CommodityMarketState(BaseModel):
    """Exchange rates for every traded commodity."""

    model_config = ConfigDict(frozen=True)

    commodities: Mapping[CommodityType, CommodityState] = Field(default_factory=dict)


class HexCellResource(BaseModel):
    """A natural resource deposit under a hex cell."""

    model_config = ConfigDict(frozen=True)

    resource_type: CommodityType
    amount: int = Field(..., ge=0)


class SurveyResult(BaseModel):
    """A player's survey of a single hex cell."""

    model_config = ConfigDict(frozen=True)

    coordinates: HexCoordinates
    survey_start_tick: int = Field(..., ge=0)
    is_complete: bool = False
    resource: HexCellResource | None = None


class PlayerPrivateState(BaseModel):
    """Per-player data that is never broadcast to other observers."""

    model_config = ConfigDict(frozen=True)

    survey_results_by_hex: Mapping[str, SurveyResult] = Field(default_factory=dict)

    @property
    def active_survey(self) -> SurveyResult | None:
        """Return the survey still in progress, if any."""
        for result in self.survey_results_by_hex.values():
            if not result.is_complete:
                return result
        return None


_PRIVATE_FIELDS = frozenset({"private_by_player_id", "hex_cell_resources"})


class Game(BaseModel):
    """Authoritative aggregate for a single match."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    phase: GamePhase = GamePhase.LOBBY
    total_ticks: int = Field(default=0, ge=0)
    random_seed: int
    players: Mapping[str, Player] = Field(default_factory=dict)
    buildables: tuple[Buildable, ...] = Field(default_factory=tuple)
    hex_grid: HexGrid
    commodity_market: CommodityMarketState
    auction: Auction | None = None
    private_by_player_id: Mapping[str, PlayerPrivateState] = Field(
        default_factory=dict
    )
    hex_cell_resources: Mapping[str, HexCellResource | None] = Field(
        default_factory=dict
    )
    next_buildable_number: int = Field(default=1, ge=1)

    @property
    def host(self) -> Player | None:
        """Return the hosting player, if anyone has joined."""
        for player in self.players.values():
            if player.is_host:
                return player
        return None

    def power_plants(self) -> tuple[PowerPlant, ...]:
        """Return placed plants in creation order."""
        return tuple(
            item
            for item in self.buildables
            if isinstance(item, PowerPlant) and not item.is_ghost
        )

    def power_poles(self) -> tuple[PowerPole, ...]:
        """Return placed poles in creation order."""
        return tuple(
            item
            for item in self.buildables
            if isinstance(item, PowerPole) and not item.is_ghost
        )

    def buildable(self, buildable_id: str) -> PowerPlant | PowerPole | None:
        """Return the buildable with *buildable_id*, if present."""
        for item in self.buildables:
            if item.id == buildable_id:
                return item
        return None

    def replace_player(self, player: Player) -> Game:
        """Return a game with *player* stored under its identifier."""
        players = dict(self.players)
        players[player.id] = player
        return self.model_copy(update={"players": players})

    def replace_buildables(
        self, replacements: Mapping[str, PowerPlant | PowerPole]
    ) -> Game:
        """Return a game where buildables are swapped by identifier."""
        buildables = tuple(
            replacements.get(item.id, item) for item in self.buildables
        )
        return self.model_copy(update={"buildables": buildables})

    def public_view(self) -> dict[str, Any]:
        """Return the JSON-ready snapshot shared with every observer."""
        return self.model_dump(mode="json", exclude=set(_PRIVATE_FIELDS))

    def private_view(self, player_id: str) -> dict[str, Any] | None:
        """Return the JSON-ready private state of *player_id*, if joined."""
        private = self.private_by_player_id.get(player_id)
        if private is None:
            return None
        return private.model_dump(mode="json")


def check_invariants(game: Game) -> None:
    """Raise :class:`GameInvariantError` when *game* is internally inconsistent."""
    hosts = [player.id for player in game.players.values() if player.is_host]
    if len(hosts) > 1:
        msg = f"Game {game.id} has more than one host: {hosts}."
        raise GameInvariantError(msg)
    if game.players and not hosts:
        msg = f"Game {game.id} has players but no host."
        raise GameInvariantError(msg)

    for player in game.players.values():
        if player.money < 0:
            msg = f"Player {player.id} has negative money {player.money}."
            raise GameInvariantError(msg)

    for commodity, state in game.commodity_market.commodities.items():
        config = state.config
        if not (
            config.min_exchange_rate
            <= state.current_exchange_rate
            <= config.max_exchange_rate
        ):
            msg = f"{commodity} rate {state.current_exchange_rate} is out of range."
            raise GameInvariantError(msg)

    for plant in game.power_plants():
        fuel = plant.current_fuel_storage
        if fuel is None:
            continue
        if fuel < 0 or (
            plant.max_fuel_storage is not None and fuel > plant.max_fuel_storage
        ):
            msg = f"Plant {plant.id} holds an invalid fuel level {fuel}."
            raise GameInvariantError(msg)

    auction = game.auction
    if auction is None:
        if game.phase.is_auction:
            msg = f"Game {game.id} is in {game.phase} without an auction."
            raise GameInvariantError(msg)
        return
    if not game.phase.is_auction:
        msg = f"Game {game.id} keeps an auction while in {game.phase}."
        raise GameInvariantError(msg)

    overlap = set(auction.passed_player_ids) & auction.purchased_player_ids
    if overlap:
        msg = f"Players both passed and purchased: {sorted(overlap)}."
        raise GameInvariantError(msg)
    bidding = game.phase is GamePhase.AUCTION_BIDDING_ON_BLUEPRINT
    if bidding != (auction.current_blueprint is not None):
        msg = f"Current blueprint does not match phase {game.phase}."
        raise GameInvariantError(msg)


__all__ = [
    "AUCTION_PHASES",
    "Auction",
    "Bid",
    "Blueprint",
    "Buildable",
    "CommodityConfig",
    "CommodityMarketState",
    "CommodityState",
    "CurrentBlueprint",
    "Game",
    "GamePhase",
    "HexCellResource",
    "Player",
    "PlayerPrivateState",
    "PowerPlant",
    "PowerPole",
    "Purchase",
    "SurveyResult",
    "check_invariants",
]
