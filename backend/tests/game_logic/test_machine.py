"""Scenario tests for the game state machine."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from powergrid_backend.game_logic.buildables import BuildableOptions
from powergrid_backend.game_logic.commands import (
    CLIENT_COMMAND_ADAPTER,
    GAME_COMMAND_ADAPTER,
    SERVICE_CALLER,
    AddBuildableCommand,
    AuctionPassBidCommand,
    BuyCommodityCommand,
    Caller,
    GameCommand,
    InitiateBidCommand,
    JoinGameCommand,
    PassAuctionCommand,
    PauseCommand,
    StartGameCommand,
    SurveyHexTileCommand,
    TickCommand,
    UnpauseCommand,
)
from powergrid_backend.game_logic.errors import GameInvariantError
from powergrid_backend.game_logic.machine import (
    GameStateMachine,
    TimerDirective,
    TransitionResult,
)
from powergrid_backend.game_logic.state import (
    Game,
    GamePhase,
    PowerPlant,
    check_invariants,
)
from powergrid_backend.shared.enums import CommodityType, CornerPosition
from powergrid_backend.shared.value_objects import CornerCoordinates, HexCoordinates

SEED = 1234


def _apply(
    machine: GameStateMachine, game: Game, command: GameCommand, caller_id: str
) -> TransitionResult:
    caller = SERVICE_CALLER if caller_id == SERVICE_CALLER.id else Caller(id=caller_id)
    return machine.apply(game, command, caller)


def _lobby(machine: GameStateMachine) -> Game:
    game = machine.create_game(game_id="game-1", random_seed=SEED)
    game = _apply(machine, game, JoinGameCommand(name="Alice"), "alice").game
    return _apply(machine, game, JoinGameCommand(name="Bob"), "bob").game


def _active_game(machine: GameStateMachine) -> tuple[Game, str, str]:
    """Run the opening auction; return the game, first and second buyer."""
    game = _apply(machine, _lobby(machine), StartGameCommand(), "alice").game
    engine = machine.auction_engine(game)
    first = engine.next_initiator(game.auction, game.players, game.total_ticks)
    second = "bob" if first == "alice" else "alice"

    game = _apply(
        machine, game, InitiateBidCommand(blueprint_id="coal-plant-1"), first
    ).game
    game = _apply(machine, game, AuctionPassBidCommand(), second).game
    result = _apply(
        machine, game, InitiateBidCommand(blueprint_id="gas-plant-1"), second
    )
    assert result.accepted
    return result.game, first, second


def test_first_player_to_join_hosts_the_game() -> None:
    machine = GameStateMachine()
    game = _lobby(machine)

    assert game.phase is GamePhase.LOBBY
    assert game.players["alice"].is_host
    assert not game.players["bob"].is_host
    assert game.players["bob"].number == 2
    assert game.players["alice"].money == 100
    assert "alice-power-pole" in game.players["alice"].blueprints_by_id
    assert set(game.private_by_player_id) == {"alice", "bob"}


def test_duplicate_join_is_rejected() -> None:
    machine = GameStateMachine()
    game = _lobby(machine)

    result = _apply(machine, game, JoinGameCommand(name="Alice again"), "alice")

    assert not result.accepted
    assert result.game is game


def test_non_host_cannot_start() -> None:
    machine = GameStateMachine()
    game = _lobby(machine)

    result = _apply(machine, game, StartGameCommand(), "bob")

    assert not result.accepted
    assert result.game is game
    assert result.game.phase is GamePhase.LOBBY


def test_host_start_opens_first_auction() -> None:
    machine = GameStateMachine()

    result = _apply(machine, _lobby(machine), StartGameCommand(), "alice")

    game = result.game
    assert result.accepted
    assert game.phase is GamePhase.AUCTION_INITIATING_BID
    assert game.auction is not None
    assert not game.auction.is_passing_allowed
    assert len(game.auction.available_blueprint_ids) == 3
    assert game.hex_cell_resources
    assert result.timer is None
    assert [event.event_type for event in result.events] == ["phase_changed"]


def test_first_auction_forbids_passing() -> None:
    machine = GameStateMachine()
    game = _apply(machine, _lobby(machine), StartGameCommand(), "alice").game
    engine = machine.auction_engine(game)
    initiator = engine.next_initiator(game.auction, game.players, game.total_ticks)

    result = _apply(machine, game, PassAuctionCommand(), initiator)

    assert not result.accepted


def test_auction_flow_reaches_active_and_starts_timer() -> None:
    machine = GameStateMachine()
    game = _apply(machine, _lobby(machine), StartGameCommand(), "alice").game
    engine = machine.auction_engine(game)
    first = engine.next_initiator(game.auction, game.players, game.total_ticks)
    second = "bob" if first == "alice" else "alice"

    opened = _apply(
        machine, game, InitiateBidCommand(blueprint_id="coal-plant-1"), first
    )
    assert opened.game.phase is GamePhase.AUCTION_BIDDING_ON_BLUEPRINT

    out_of_turn = _apply(machine, opened.game, AuctionPassBidCommand(), first)
    assert not out_of_turn.accepted

    settled = _apply(machine, opened.game, AuctionPassBidCommand(), second)
    assert settled.game.phase is GamePhase.AUCTION_INITIATING_BID
    assert settled.game.players[first].money == 90
    assert "coal-plant-1" in settled.game.players[first].blueprints_by_id

    final = _apply(
        machine, settled.game, InitiateBidCommand(blueprint_id="gas-plant-1"), second
    )
    assert final.accepted
    assert final.game.phase is GamePhase.ACTIVE
    assert final.game.auction is None
    assert final.timer is TimerDirective.START
    assert final.game.players[second].money == 88
    event_types = [event.event_type for event in final.events]
    assert "blueprint_purchased" in event_types
    assert "auction_ended" in event_types


def test_build_and_tick_sells_power() -> None:
    machine = GameStateMachine()
    game, first, _second = _active_game(machine)

    built = _apply(
        machine,
        game,
        AddBuildableCommand(
            blueprint_id="coal-plant-1",
            options=BuildableOptions(coordinates=HexCoordinates(x=1, z=1)),
        ),
        first,
    )
    assert built.accepted
    assert "coal-plant-1" not in built.game.players[first].blueprints_by_id

    wired = _apply(
        machine,
        built.game,
        AddBuildableCommand(
            blueprint_id=f"{first}-power-pole",
            options=BuildableOptions(
                corner_coordinates=CornerCoordinates(
                    hex=HexCoordinates(x=2, z=0), position=CornerPosition.SOUTH
                )
            ),
        ),
        first,
    )
    assert wired.accepted
    assert wired.game.players[first].money == pytest.approx(89)

    ticked = _apply(machine, wired.game, TickCommand(), SERVICE_CALLER.id)

    assert ticked.accepted
    assert ticked.game.total_ticks == 1
    player = ticked.game.players[first]
    assert player.money == pytest.approx(91.5)
    assert player.power_sold_kwh == pytest.approx(25)
    plant = ticked.game.power_plants()[0]
    assert plant.current_fuel_storage == pytest.approx(47.5)


def test_build_requires_money() -> None:
    machine = GameStateMachine()
    game, first, _second = _active_game(machine)
    broke = game.replace_player(game.players[first].model_copy(update={"money": 0}))

    result = _apply(
        machine,
        broke,
        AddBuildableCommand(
            blueprint_id=f"{first}-power-pole",
            options=BuildableOptions(
                corner_coordinates=CornerCoordinates(
                    hex=HexCoordinates(x=2, z=0), position=CornerPosition.SOUTH
                )
            ),
        ),
        first,
    )

    assert not result.accepted
    assert "cannot afford" in (result.reason or "")


def test_ticks_come_only_from_the_service() -> None:
    machine = GameStateMachine()
    game, first, _second = _active_game(machine)

    from_client = _apply(machine, game, TickCommand(), first)
    in_lobby = _apply(machine, _lobby(machine), TickCommand(), SERVICE_CALLER.id)

    assert not from_client.accepted
    assert not in_lobby.accepted


def test_tick_is_not_a_client_command() -> None:
    payload = {"type": "TICK"}

    assert isinstance(GAME_COMMAND_ADAPTER.validate_python(payload), TickCommand)
    with pytest.raises(ValidationError):
        CLIENT_COMMAND_ADAPTER.validate_python(payload)


def test_pause_and_unpause_toggle_timer() -> None:
    machine = GameStateMachine()
    game, first, second = _active_game(machine)

    paused = _apply(machine, game, PauseCommand(), first)
    assert paused.game.phase is GamePhase.PAUSED
    assert paused.timer is TimerDirective.STOP

    tick = _apply(machine, paused.game, TickCommand(), SERVICE_CALLER.id)
    assert not tick.accepted

    resumed = _apply(machine, paused.game, UnpauseCommand(), second)
    assert resumed.game.phase is GamePhase.ACTIVE
    assert resumed.timer is TimerDirective.START

    stranger = _apply(machine, game, PauseCommand(), "mallory")
    assert not stranger.accepted


def test_buying_fuel_through_the_machine() -> None:
    machine = GameStateMachine()
    game, first, _second = _active_game(machine)
    game = _apply(
        machine,
        game,
        AddBuildableCommand(
            blueprint_id="coal-plant-1",
            options=BuildableOptions(coordinates=HexCoordinates(x=1, z=1)),
        ),
        first,
    ).game
    plant = game.power_plants()[0]

    result = _apply(
        machine,
        game,
        BuyCommodityCommand(
            fuel_type=CommodityType.COAL, units=5, power_plant_id=plant.id
        ),
        first,
    )

    assert result.accepted
    expected_money = game.players[first].money - 65
    assert result.game.players[first].money == pytest.approx(expected_money)
    updated = result.game.buildable(plant.id)
    assert isinstance(updated, PowerPlant)
    assert updated.current_fuel_storage == pytest.approx(55)
    assert [event.event_type for event in result.events] == ["commodity_traded"]


def test_survey_completes_after_four_ticks() -> None:
    machine = GameStateMachine()
    game, first, _second = _active_game(machine)
    target = HexCoordinates(x=3, z=3)

    game = _apply(machine, game, SurveyHexTileCommand(coordinates=target), first).game
    assert game.private_view(first)["survey_results_by_hex"][target.key][
        "is_complete"
    ] is False

    for _ in range(4):
        game = _apply(machine, game, TickCommand(), SERVICE_CALLER.id).game

    survey = game.private_by_player_id[first].survey_results_by_hex[target.key]
    assert survey.is_complete
    assert survey.resource == game.hex_cell_resources[target.key]
    assert "private_by_player_id" not in game.public_view()
    assert "hex_cell_resources" not in game.public_view()


def test_invariant_check_rejects_two_hosts() -> None:
    machine = GameStateMachine()
    game = _lobby(machine)
    second_host = game.players["bob"].model_copy(update={"is_host": True})
    broken = game.replace_player(second_host)

    with pytest.raises(GameInvariantError, match="more than one host"):
        check_invariants(broken)
