"""Authoritative phase state machine for a single match.

:meth:`GameStateMachine.apply` is total: a command that is out of phase or
fails its guard returns the unchanged snapshot with ``accepted=False``. An
accepted command returns a brand-new snapshot, the domain events it produced
and, when the transition enters or leaves the ``active`` phase, a directive
telling the hosting actor to start or stop the tick timer.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from powergrid_backend.game_logic.auction import AuctionEngine, start_auction
from powergrid_backend.game_logic.buildables import (
    create_buildable,
    find_possible_connections,
    validate_placement,
)
from powergrid_backend.game_logic.commands import (
    AddBuildableCommand,
    AuctionPassBidCommand,
    AuctionPlaceBidCommand,
    BuyCommodityCommand,
    Caller,
    GameCommand,
    InitiateBidCommand,
    JoinGameCommand,
    PassAuctionCommand,
    PauseCommand,
    SellCommodityCommand,
    StartGameCommand,
    SurveyHexTileCommand,
    TickCommand,
    UnpauseCommand,
)
from powergrid_backend.game_logic.configuration import (
    GameConfiguration,
    get_default_game_configuration,
)
from powergrid_backend.game_logic.errors import CommandRejectedError
from powergrid_backend.game_logic.hexgrid import HexGrid, load_hex_grid
from powergrid_backend.game_logic.market import (
    buy_commodity,
    initialize_commodity_market,
    sell_commodity,
)
from powergrid_backend.game_logic.power import resolve_power_grid
from powergrid_backend.game_logic.state import (
    Auction,
    Game,
    GamePhase,
    Player,
    PlayerPrivateState,
    PowerPlant,
    PowerPole,
    check_invariants,
)
from powergrid_backend.game_logic.surveys import (
    complete_surveys,
    precompute_hex_resources,
    start_survey,
)
from powergrid_backend.shared.enums import BuildableKind
from powergrid_backend.shared.events import GameEvent

logger = logging.getLogger(__name__)


class TimerDirective(StrEnum):
    """Instruction for the tick timer emitted alongside a transition."""

    START = "start"
    STOP = "stop"


class TransitionResult(BaseModel):
    """Outcome of applying one command to a snapshot."""

    model_config = ConfigDict(frozen=True)

    game: Game
    accepted: bool
    reason: str | None = None
    events: tuple[GameEvent, ...] = Field(default_factory=tuple)
    timer: TimerDirective | None = None


TRANSITION_TABLE: Mapping[str, frozenset[GamePhase]] = {
    "JOIN_GAME": frozenset({GamePhase.LOBBY}),
    "START_GAME": frozenset({GamePhase.LOBBY}),
    "ADD_BUILDABLE": frozenset({GamePhase.ACTIVE}),
    "TICK": frozenset({GamePhase.ACTIVE}),
    "PAUSE": frozenset({GamePhase.ACTIVE}),
    "UNPAUSE": frozenset({GamePhase.PAUSED}),
    "INITIATE_BID": frozenset({GamePhase.AUCTION_INITIATING_BID}),
    "AUCTION_PLACE_BID": frozenset({GamePhase.AUCTION_BIDDING_ON_BLUEPRINT}),
    "AUCTION_PASS_BID": frozenset({GamePhase.AUCTION_BIDDING_ON_BLUEPRINT}),
    "PASS_AUCTION": frozenset({GamePhase.AUCTION_INITIATING_BID}),
    "BUY_COMMODITY": frozenset({GamePhase.ACTIVE}),
    "SELL_COMMODITY": frozenset({GamePhase.ACTIVE}),
    "SURVEY_HEX_TILE": frozenset({GamePhase.ACTIVE}),
}

_Outcome = tuple[Game, list[GameEvent]]


class GameStateMachine:
    """Interpret commands against immutable :class:`Game` snapshots."""

    def __init__(self, configuration: GameConfiguration | None = None) -> None:
        self._config = configuration or get_default_game_configuration()

    @property
    def configuration(self) -> GameConfiguration:
        """Return the rules applied by this machine."""
        return self._config

    def create_game(
        self, *, game_id: str, random_seed: int, hex_grid: HexGrid | None = None
    ) -> Game:
        """Return a fresh lobby for *game_id*."""
        return Game(
            id=game_id,
            random_seed=random_seed,
            hex_grid=hex_grid or load_hex_grid(self._config.map_path),
            commodity_market=initialize_commodity_market(self._config.commodities),
        )

    def auction_engine(self, game: Game) -> AuctionEngine:
        """Return the auction rules bound to *game*'s seed."""
        return AuctionEngine(
            random_seed=game.random_seed,
            minimum_bid_increment=self._config.minimum_bid_increment,
        )

    def apply(self, game: Game, command: GameCommand, caller: Caller) -> TransitionResult:
        """Apply *command* from *caller* and return the resulting transition."""
        allowed = TRANSITION_TABLE[command.type]
        if game.phase not in allowed:
            return self._reject(
                game, command, caller, f"{command.type} is not valid in {game.phase}"
            )

        try:
            next_game, events = self._dispatch(game, command, caller)
        except CommandRejectedError as exc:
            return self._reject(game, command, caller, exc.reason)

        check_invariants(next_game)
        if next_game.phase is not game.phase:
            logger.info(
                "Game %s moved from %s to %s", game.id, game.phase, next_game.phase
            )
            events.append(
                self._event(
                    next_game,
                    "phase_changed",
                    payload={"from": game.phase.value, "to": next_game.phase.value},
                )
            )
        return TransitionResult(
            game=next_game,
            accepted=True,
            events=tuple(events),
            timer=_timer_directive(game.phase, next_game.phase),
        )

    def _reject(
        self, game: Game, command: GameCommand, caller: Caller, reason: str
    ) -> TransitionResult:
        logger.debug(
            "Rejected %s from %s in game %s: %s", command.type, caller.id, game.id, reason
        )
        return TransitionResult(game=game, accepted=False, reason=reason)

    def _dispatch(  # noqa: C901
        self, game: Game, command: GameCommand, caller: Caller
    ) -> _Outcome:
        match command:
            case JoinGameCommand():
                return self._join(game, command, caller)
            case StartGameCommand():
                return self._start(game, caller)
            case AddBuildableCommand():
                return self._add_buildable(game, command, caller)
            case TickCommand():
                return self._tick(game, caller)
            case PauseCommand():
                _require_player(game, caller)
                return game.model_copy(update={"phase": GamePhase.PAUSED}), []
            case UnpauseCommand():
                _require_player(game, caller)
                return game.model_copy(update={"phase": GamePhase.ACTIVE}), []
            case InitiateBidCommand():
                return self._initiate_bid(game, command, caller)
            case AuctionPlaceBidCommand():
                return self._place_bid(game, command, caller)
            case AuctionPassBidCommand():
                return self._pass_bid(game, caller)
            case PassAuctionCommand():
                return self._pass_auction(game, caller)
            case BuyCommodityCommand() | SellCommodityCommand():
                return self._trade(game, command, caller)
            case SurveyHexTileCommand():
                return self._survey(game, command, caller)
        msg = f"Unsupported command {command.type}"
        raise CommandRejectedError(msg)

    @staticmethod
    def _event(
        game: Game,
        event_type: str,
        *,
        player_id: str | None = None,
        payload: dict[str, object] | None = None,
    ) -> GameEvent:
        return GameEvent(
            event_type=event_type,
            total_ticks=game.total_ticks,
            player_id=player_id,
            payload=payload or {},
        )

    def _join(self, game: Game, command: JoinGameCommand, caller: Caller) -> _Outcome:
        if caller.kind != "client":
            msg = "Only clients can join a game."
            raise CommandRejectedError(msg)
        if caller.id in game.players:
            msg = f"Player {caller.id} has already joined."
            raise CommandRejectedError(msg)

        pole_blueprint = self._config.pole_blueprint_for(caller.id)
        player = Player(
            id=caller.id,
            name=command.name,
            number=len(game.players) + 1,
            money=self._config.starting_money,
            is_host=not game.players,
            blueprints_by_id={pole_blueprint.id: pole_blueprint},
        )
        private = dict(game.private_by_player_id)
        private[caller.id] = PlayerPrivateState()
        next_game = game.replace_player(player).model_copy(
            update={"private_by_player_id": private}
        )
        logger.info("Player %s joined game %s", caller.id, game.id)
        return next_game, [
            self._event(
                next_game,
                "player_joined",
                player_id=caller.id,
                payload={"name": command.name, "is_host": player.is_host},
            )
        ]

    def _start(self, game: Game, caller: Caller) -> _Outcome:
        player = _require_player(game, caller)
        if not player.is_host:
            msg = f"Player {caller.id} is not the host."
            raise CommandRejectedError(msg)

        lot = self._config.auction_lot(len(game.players))
        next_game = game.model_copy(
            update={
                "phase": GamePhase.AUCTION_INITIATING_BID,
                "auction": start_auction(lot, is_passing_allowed=False),
                "hex_cell_resources": precompute_hex_resources(
                    game.hex_grid, game.random_seed
                ),
            }
        )
        return self._settle_auction(next_game, [])

    def _tick(self, game: Game, caller: Caller) -> _Outcome:
        if caller.kind != "service":
            msg = "Ticks are emitted by the game service only."
            raise CommandRejectedError(msg)

        total_ticks = game.total_ticks + 1
        result = resolve_power_grid(game.hex_grid, game.buildables)

        players = dict(game.players)
        for player_id, income in result.income_per_player.items():
            player = players.get(player_id)
            if player is None:
                continue
            players[player_id] = player.credit(income).model_copy(
                update={
                    "power_sold_kwh": player.power_sold_kwh
                    + result.power_sold_per_player_kwh.get(player_id, 0)
                }
            )

        refuelled: dict[str, PowerPlant | PowerPole] = {}
        for plant in game.power_plants():
            if plant.id in result.fuel_storage_by_plant_id:
                refuelled[plant.id] = plant.with_fuel(
                    result.fuel_storage_by_plant_id[plant.id]
                )

        private, completed = complete_surveys(
            game.private_by_player_id,
            resources=game.hex_cell_resources,
            current_tick=total_ticks,
            duration_ticks=self._config.survey_duration_ticks,
        )
        next_game = game.replace_buildables(refuelled).model_copy(
            update={
                "total_ticks": total_ticks,
                "players": players,
                "private_by_player_id": private,
            }
        )
        events = [
            self._event(
                next_game,
                "power_resolved",
                payload={
                    "income_per_player": dict(result.income_per_player),
                    "power_sold_per_player_kwh": dict(
                        result.power_sold_per_player_kwh
                    ),
                },
            )
        ]
        events.extend(
            self._event(
                next_game,
                "survey_completed",
                player_id=player_id,
                payload={"hex": survey.coordinates.key},
            )
            for player_id, survey in completed
        )
        return next_game, events

    def _add_buildable(
        self, game: Game, command: AddBuildableCommand, caller: Caller
    ) -> _Outcome:
        player = _require_player(game, caller)
        blueprint = player.blueprints_by_id.get(command.blueprint_id)
        if blueprint is None:
            msg = f"Player {caller.id} does not own blueprint {command.blueprint_id}."
            raise CommandRejectedError(msg)
        cost = self._config.cost_of(blueprint.kind)
        if player.money < cost:
            msg = f"Player {caller.id} cannot afford {cost}."
            raise CommandRejectedError(msg)
        validate_placement(
            blueprint=blueprint,
            player_id=caller.id,
            buildables=game.buildables,
            hex_grid=game.hex_grid,
            options=command.options,
        )

        buildable_id = f"buildable-{game.next_buildable_number}"
        connections: tuple[str, ...] = ()
        if (
            blueprint.kind is BuildableKind.POWER_POLE
            and command.options.corner_coordinates is not None
        ):
            connections = find_possible_connections(
                game.buildables, command.options.corner_coordinates, caller.id
            )
        buildable = create_buildable(
            blueprint,
            buildable_id=buildable_id,
            player_id=caller.id,
            options=command.options,
            connected_to_ids=connections,
        )

        linked: dict[str, PowerPlant | PowerPole] = {}
        for item in game.power_poles():
            if item.id in connections:
                linked[item.id] = item.connect(buildable_id)

        remaining = blueprint.consume_build()
        updated_player = player.debit(cost)
        updated_player = (
            updated_player.with_blueprint(remaining)
            if remaining is not None
            else updated_player.without_blueprint(blueprint.id)
        )
        relinked = game.replace_buildables(linked)
        next_game = relinked.replace_player(updated_player).model_copy(
            update={
                "buildables": (*relinked.buildables, buildable),
                "next_buildable_number": game.next_buildable_number + 1,
            }
        )
        return next_game, [
            self._event(
                next_game,
                "buildable_added",
                player_id=caller.id,
                payload={"buildable_id": buildable_id, "blueprint_id": blueprint.id},
            )
        ]

    def _initiate_bid(
        self, game: Game, command: InitiateBidCommand, caller: Caller
    ) -> _Outcome:
        _require_player(game, caller)
        engine = self.auction_engine(game)
        auction = engine.initiate_bid(
            _require_auction(game),
            game.players,
            game.total_ticks,
            player_id=caller.id,
            blueprint_id=command.blueprint_id,
        )
        next_game = game.model_copy(
            update={
                "auction": auction,
                "phase": GamePhase.AUCTION_BIDDING_ON_BLUEPRINT,
            }
        )
        return self._settle_auction(next_game, [])

    def _place_bid(
        self, game: Game, command: AuctionPlaceBidCommand, caller: Caller
    ) -> _Outcome:
        _require_player(game, caller)
        auction = self.auction_engine(game).place_bid(
            _require_auction(game),
            game.players,
            game.total_ticks,
            player_id=caller.id,
            amount=command.amount,
        )
        return self._settle_auction(game.model_copy(update={"auction": auction}), [])

    def _pass_bid(self, game: Game, caller: Caller) -> _Outcome:
        _require_player(game, caller)
        auction = self.auction_engine(game).pass_bid(
            _require_auction(game),
            game.players,
            game.total_ticks,
            player_id=caller.id,
        )
        return self._settle_auction(game.model_copy(update={"auction": auction}), [])

    def _pass_auction(self, game: Game, caller: Caller) -> _Outcome:
        _require_player(game, caller)
        auction = self.auction_engine(game).pass_auction(
            _require_auction(game),
            game.players,
            game.total_ticks,
            player_id=caller.id,
        )
        return self._settle_auction(game.model_copy(update={"auction": auction}), [])

    def _settle_auction(self, game: Game, events: list[GameEvent]) -> _Outcome:
        """Resolve a finished lot, then close the auction once everyone is done."""
        engine = self.auction_engine(game)
        auction = _require_auction(game)

        if auction.current_blueprint is not None and engine.should_end_bidding(
            auction, game.players
        ):
            lot_id = auction.current_blueprint.blueprint_id
            auction, purchase = engine.process_blueprint_winner(auction)
            game = game.model_copy(
                update={"auction": auction, "phase": GamePhase.AUCTION_INITIATING_BID}
            )
            if purchase is not None:
                winner = (
                    game.players[purchase.player_id]
                    .debit(purchase.price)
                    .with_blueprint(auction.blueprints_by_id[lot_id])
                )
                game = game.replace_player(winner)
                events.append(
                    self._event(
                        game,
                        "blueprint_purchased",
                        player_id=purchase.player_id,
                        payload={"blueprint_id": lot_id, "price": purchase.price},
                    )
                )

        if auction.current_blueprint is None and engine.should_end_auction(
            auction, game.players
        ):
            game = game.model_copy(update={"auction": None, "phase": GamePhase.ACTIVE})
            events.append(self._event(game, "auction_ended"))
        return game, events

    def _trade(
        self,
        game: Game,
        command: BuyCommodityCommand | SellCommodityCommand,
        caller: Caller,
    ) -> _Outcome:
        player = _require_player(game, caller)
        plant = game.buildable(command.power_plant_id)
        if not isinstance(plant, PowerPlant) or plant.is_ghost:
            msg = f"{command.power_plant_id} is not a power plant."
            raise CommandRejectedError(msg)
        trade = buy_commodity if isinstance(command, BuyCommodityCommand) else sell_commodity
        result = trade(
            game.commodity_market,
            player=player,
            plant=plant,
            commodity=command.fuel_type,
            units=command.units,
        )
        next_game = (
            game.replace_player(result.player)
            .replace_buildables({plant.id: result.plant})
            .model_copy(update={"commodity_market": result.market})
        )
        return next_game, [
            self._event(
                next_game,
                "commodity_traded",
                player_id=caller.id,
                payload={
                    "side": "buy" if isinstance(command, BuyCommodityCommand) else "sell",
                    "fuel_type": command.fuel_type.value,
                    "units": command.units,
                    "total": result.total,
                },
            )
        ]

    def _survey(
        self, game: Game, command: SurveyHexTileCommand, caller: Caller
    ) -> _Outcome:
        _require_player(game, caller)
        current = game.private_by_player_id.get(caller.id, PlayerPrivateState())
        updated = start_survey(
            current,
            hex_grid=game.hex_grid,
            coordinates=command.coordinates,
            current_tick=game.total_ticks,
        )
        private = dict(game.private_by_player_id)
        private[caller.id] = updated
        return game.model_copy(update={"private_by_player_id": private}), []


def _require_player(game: Game, caller: Caller) -> Player:
    player = game.players.get(caller.id)
    if player is None:
        msg = f"{caller.id} has not joined game {game.id}."
        raise CommandRejectedError(msg)
    return player


def _require_auction(game: Game) -> Auction:
    if game.auction is None:
        msg = f"Game {game.id} has no auction."
        raise CommandRejectedError(msg)
    return game.auction


def _timer_directive(previous: GamePhase, current: GamePhase) -> TimerDirective | None:
    if current is GamePhase.ACTIVE and previous is not GamePhase.ACTIVE:
        return TimerDirective.START
    if previous is GamePhase.ACTIVE and current is not GamePhase.ACTIVE:
        return TimerDirective.STOP
    return None


__all__ = [
    "TRANSITION_TABLE",
    "GameStateMachine",
    "TimerDirective",
    "TransitionResult",
]
