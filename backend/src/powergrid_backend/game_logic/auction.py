"""Blueprint auction rules.

Turn order favours companies that have sold the least power so far. Ties are
broken with a generator seeded on ``f"{total_ticks}-{random_seed}"`` so every
observer computes the same order, while the order among tied players still
rotates as simulated time advances.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence  # noqa: TC003

from powergrid_backend.game_logic.errors import AuctionRuleError
from powergrid_backend.game_logic.state import (
    Auction,
    Bid,
    Blueprint,
    CurrentBlueprint,
    Player,
    Purchase,
)
from powergrid_backend.shared.rng import DeterministicRandomService

logger = logging.getLogger(__name__)


def bidder_priority_order(
    players: Mapping[str, Player], total_ticks: int, random_seed: int
) -> tuple[str, ...]:
    """Return player ids ordered by ascending power sold with a seeded tie-break."""
    rng = DeterministicRandomService.for_tick(total_ticks, random_seed)
    tie_breakers = {player_id: rng.random() for player_id in sorted(players)}
    return tuple(
        sorted(
            tie_breakers,
            key=lambda player_id: (
                players[player_id].power_sold_kwh,
                tie_breakers[player_id],
            ),
        )
    )


def start_auction(
    blueprints: Sequence[Blueprint], *, is_passing_allowed: bool
) -> Auction:
    """Open an auction over *blueprints* in offering order."""
    return Auction(
        available_blueprint_ids=tuple(blueprint.id for blueprint in blueprints),
        blueprints_by_id={blueprint.id: blueprint for blueprint in blueprints},
        is_passing_allowed=is_passing_allowed,
    )


class AuctionEngine:
    """Turn order, bid validity and resolution for blueprint auctions."""

    def __init__(self, *, random_seed: int, minimum_bid_increment: float = 1) -> None:
        self._random_seed = random_seed
        self._minimum_bid_increment = minimum_bid_increment

    def priority_order(
        self, players: Mapping[str, Player], total_ticks: int
    ) -> tuple[str, ...]:
        """Return the bidder priority order at *total_ticks*."""
        return bidder_priority_order(players, total_ticks, self._random_seed)

    def _in_cycle(
        self, auction: Auction, players: Mapping[str, Player], total_ticks: int
    ) -> list[str]:
        excluded = set(auction.passed_player_ids) | auction.purchased_player_ids
        return [
            player_id
            for player_id in self.priority_order(players, total_ticks)
            if player_id not in excluded
        ]

    def next_initiator(
        self, auction: Auction, players: Mapping[str, Player], total_ticks: int
    ) -> str | None:
        """Return who opens bidding on the next blueprint."""
        eligible = self._in_cycle(auction, players, total_ticks)
        return eligible[0] if eligible else None

    def next_bidder(
        self, auction: Auction, players: Mapping[str, Player], total_ticks: int
    ) -> str | None:
        """Return whose turn it is to bid on the current blueprint."""
        current = auction.current_blueprint
        if current is None:
            return None
        cycle = self._in_cycle(auction, players, total_ticks)
        if not cycle:
            return None
        passed_here = {bid.player_id for bid in current.bids if bid.passed}
        last_owner = current.bids[-1].player_id if current.bids else None
        start = cycle.index(last_owner) + 1 if last_owner in cycle else 0
        for offset in range(len(cycle)):
            candidate = cycle[(start + offset) % len(cycle)]
            if candidate not in passed_here:
                return candidate
        return None

    def highest_bid(self, auction: Auction) -> Bid | None:
        """Return the leading non-passed bid on the current blueprint."""
        current = auction.current_blueprint
        if current is None:
            return None
        placed = [bid for bid in current.bids if not bid.passed]
        if not placed:
            return None
        return max(placed, key=lambda bid: bid.amount or 0)

    def minimum_bid(self, auction: Auction) -> float | None:
        """Return the smallest acceptable next bid, or ``None`` without a lot."""
        if auction.current_blueprint is None:
            return None
        leader = self.highest_bid(auction)
        if leader is None:
            blueprint = auction.blueprints_by_id[auction.current_blueprint.blueprint_id]
            return blueprint.starting_price
        return (leader.amount or 0) + self._minimum_bid_increment

    def should_end_bidding(
        self, auction: Auction, players: Mapping[str, Player]
    ) -> bool:
        """Return ``True`` once at most one active bidder remains on the lot."""
        current = auction.current_blueprint
        if current is None:
            return False
        passed_here = {bid.player_id for bid in current.bids if bid.passed}
        excluded = set(auction.passed_player_ids) | auction.purchased_player_ids
        active = [
            player_id
            for player_id in players
            if player_id not in excluded and player_id not in passed_here
        ]
        return len(active) <= 1

    def should_end_auction(
        self, auction: Auction, players: Mapping[str, Player]
    ) -> bool:
        """Return ``True`` when everyone passed or purchased, or the pool is empty."""
        settled = set(auction.passed_player_ids) | auction.purchased_player_ids
        if all(player_id in settled for player_id in players):
            return True
        return auction.current_blueprint is None and not auction.available_blueprint_ids

    def initiate_bid(
        self,
        auction: Auction,
        players: Mapping[str, Player],
        total_ticks: int,
        *,
        player_id: str,
        blueprint_id: str,
    ) -> Auction:
        """Open bidding on *blueprint_id* with an opening bid at its starting price."""
        if auction.current_blueprint is not None:
            msg = "A blueprint is already under bidding."
            raise AuctionRuleError(msg)
        if player_id != self.next_initiator(auction, players, total_ticks):
            msg = f"It is not {player_id}'s turn to initiate."
            raise AuctionRuleError(msg)
        if blueprint_id not in auction.available_blueprint_ids:
            msg = f"Blueprint {blueprint_id} is not on offer."
            raise AuctionRuleError(msg)
        opening = auction.blueprints_by_id[blueprint_id].starting_price
        if players[player_id].money < opening:
            msg = f"Player {player_id} cannot afford the opening bid {opening}."
            raise AuctionRuleError(msg)
        current = CurrentBlueprint(
            blueprint_id=blueprint_id,
            bids=(Bid(player_id=player_id, amount=opening),),
        )
        return auction.model_copy(update={"current_blueprint": current})

    def place_bid(
        self,
        auction: Auction,
        players: Mapping[str, Player],
        total_ticks: int,
        *,
        player_id: str,
        amount: float,
    ) -> Auction:
        """Append a bid of *amount* for the player whose turn it is."""
        current = auction.current_blueprint
        if current is None:
            msg = "No blueprint is under bidding."
            raise AuctionRuleError(msg)
        if player_id != self.next_bidder(auction, players, total_ticks):
            msg = f"It is not {player_id}'s turn to bid."
            raise AuctionRuleError(msg)
        minimum = self.minimum_bid(auction) or 0
        if amount < minimum:
            msg = f"Bid {amount} is below the minimum {minimum}."
            raise AuctionRuleError(msg)
        if players[player_id].money < amount:
            msg = f"Player {player_id} cannot afford {amount}."
            raise AuctionRuleError(msg)
        updated = current.add_bid(Bid(player_id=player_id, amount=amount))
        return auction.model_copy(update={"current_blueprint": updated})

    def pass_bid(
        self,
        auction: Auction,
        players: Mapping[str, Player],
        total_ticks: int,
        *,
        player_id: str,
    ) -> Auction:
        """Record that the player whose turn it is drops out of this lot."""
        current = auction.current_blueprint
        if current is None:
            msg = "No blueprint is under bidding."
            raise AuctionRuleError(msg)
        if player_id != self.next_bidder(auction, players, total_ticks):
            msg = f"It is not {player_id}'s turn to bid."
            raise AuctionRuleError(msg)
        updated = current.add_bid(Bid(player_id=player_id, passed=True))
        return auction.model_copy(update={"current_blueprint": updated})

    def pass_auction(
        self,
        auction: Auction,
        players: Mapping[str, Player],
        total_ticks: int,
        *,
        player_id: str,
    ) -> Auction:
        """Withdraw the current initiator from the rest of the auction."""
        if not auction.is_passing_allowed:
            msg = "Passing is not allowed in this auction."
            raise AuctionRuleError(msg)
        if auction.current_blueprint is not None:
            msg = "Cannot pass the auction while a blueprint is under bidding."
            raise AuctionRuleError(msg)
        if player_id != self.next_initiator(auction, players, total_ticks):
            msg = f"It is not {player_id}'s turn to initiate."
            raise AuctionRuleError(msg)
        return auction.model_copy(
            update={"passed_player_ids": (*auction.passed_player_ids, player_id)}
        )

    def process_blueprint_winner(self, auction: Auction) -> tuple[Auction, Purchase | None]:
        """Close the current lot, awarding it to the highest bid."""
        current = auction.current_blueprint
        if current is None:
            return auction, None
        leader = self.highest_bid(auction)
        if leader is None:
            logger.info("Blueprint %s received no bids", current.blueprint_id)
            return auction.model_copy(update={"current_blueprint": None}), None

        purchase = Purchase(
            player_id=leader.player_id,
            blueprint_id=current.blueprint_id,
            price=leader.amount or 0,
        )
        logger.info(
            "Player %s won blueprint %s for %s",
            purchase.player_id,
            purchase.blueprint_id,
            purchase.price,
        )
        return (
            auction.model_copy(
                update={
                    "available_blueprint_ids": tuple(
                        blueprint_id
                        for blueprint_id in auction.available_blueprint_ids
                        if blueprint_id != current.blueprint_id
                    ),
                    "current_blueprint": None,
                    "purchases": (*auction.purchases, purchase),
                }
            ),
            purchase,
        )


__all__ = [
    "AuctionEngine",
    "bidder_priority_order",
    "start_auction",
]
