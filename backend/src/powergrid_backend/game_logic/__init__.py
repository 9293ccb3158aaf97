"""Core rules and mechanics that drive the power grid simulation."""

from powergrid_backend.game_logic.actor import GameActor, GameListener
from powergrid_backend.game_logic.auction import (
    AuctionEngine,
    bidder_priority_order,
    start_auction,
)
from powergrid_backend.game_logic.commands import (
    CLIENT_COMMAND_ADAPTER,
    GAME_COMMAND_ADAPTER,
    SERVICE_CALLER,
    Caller,
    ClientCommand,
    GameCommand,
)
from powergrid_backend.game_logic.configuration import (
    GameConfiguration,
    GameDefaults,
    get_default_game_configuration,
)
from powergrid_backend.game_logic.errors import (
    AuctionRuleError,
    CommandRejectedError,
    GameAlreadyExistsError,
    GameInvariantError,
    GameNotFoundError,
    PlacementError,
    SurveyRejectedError,
    TradeRejectedError,
)
from powergrid_backend.game_logic.hexgrid import (
    HexCell,
    HexGrid,
    load_default_hex_grid,
    load_hex_grid,
)
from powergrid_backend.game_logic.machine import (
    GameStateMachine,
    TimerDirective,
    TransitionResult,
)
from powergrid_backend.game_logic.market import (
    buy_commodity,
    get_market_rates,
    initialize_commodity_market,
    sell_commodity,
)
from powergrid_backend.game_logic.persistence import GameStore, InMemoryGameStore
from powergrid_backend.game_logic.power import PowerGridResult, resolve_power_grid
from powergrid_backend.game_logic.state import (
    Game,
    GamePhase,
    Player,
    PowerPlant,
    PowerPole,
    check_invariants,
)
from powergrid_backend.game_logic.timer import TickTimer, TimerTick

__all__ = [
    "CLIENT_COMMAND_ADAPTER",
    "GAME_COMMAND_ADAPTER",
    "SERVICE_CALLER",
    "AuctionEngine",
    "AuctionRuleError",
    "Caller",
    "ClientCommand",
    "CommandRejectedError",
    "Game",
    "GameActor",
    "GameAlreadyExistsError",
    "GameCommand",
    "GameConfiguration",
    "GameDefaults",
    "GameInvariantError",
    "GameListener",
    "GameNotFoundError",
    "GamePhase",
    "GameStateMachine",
    "GameStore",
    "HexCell",
    "HexGrid",
    "InMemoryGameStore",
    "PlacementError",
    "Player",
    "PowerGridResult",
    "PowerPlant",
    "PowerPole",
    "SurveyRejectedError",
    "TickTimer",
    "TimerDirective",
    "TimerTick",
    "TradeRejectedError",
    "TransitionResult",
    "bidder_priority_order",
    "buy_commodity",
    "check_invariants",
    "get_market_rates",
    "initialize_commodity_market",
    "load_default_hex_grid",
    "load_hex_grid",
    "resolve_power_grid",
    "sell_commodity",
    "start_auction",
]
