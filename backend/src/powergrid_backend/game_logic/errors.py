"""Exception types raised by the game logic layer."""

from __future__ import annotations


class CommandRejectedError(Exception):
    """Raised when a well-formed command violates a transition guard."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class TradeRejectedError(CommandRejectedError):
    """Raised when a commodity trade cannot be executed."""


class AuctionRuleError(CommandRejectedError):
    """Raised when an auction action is out of turn or otherwise invalid."""


class PlacementError(CommandRejectedError):
    """Raised when a buildable cannot be placed at the requested location."""


class SurveyRejectedError(CommandRejectedError):
    """Raised when a survey cannot be started."""


class GameInvariantError(RuntimeError):
    """Raised when a transition produced a snapshot that breaks a game invariant."""


class GameNotFoundError(LookupError):
    """Raised when a game identifier is unknown to the registry or store."""


class GameAlreadyExistsError(ValueError):
    """Raised when creating a game whose identifier is already taken."""


__all__ = [
    "AuctionRuleError",
    "CommandRejectedError",
    "GameAlreadyExistsError",
    "GameInvariantError",
    "GameNotFoundError",
    "PlacementError",
    "SurveyRejectedError",
    "TradeRejectedError",
]
