"""Deterministic random helpers used across the game logic."""

from __future__ import annotations

from collections.abc import Sequence  # noqa: TC003
from random import Random
from typing import TypeVar

_T = TypeVar("_T")


class DeterministicRandomService:
    """Thin wrapper around :class:`random.Random` keyed on game data.

    String seeds are hashed by :mod:`random` with SHA-512, so a seed such as
    ``"12-4242"`` produces the same sequence on every interpreter and host.
    """

    def __init__(self, seed: int | str) -> None:
        self._random = Random(seed)  # noqa: S311

    @classmethod
    def for_tick(cls, total_ticks: int, random_seed: int) -> DeterministicRandomService:
        """Return a generator keyed on the simulated time and the game seed."""
        return cls(f"{total_ticks}-{random_seed}")

    def random(self) -> float:
        """Return the next float in ``[0, 1)``."""
        return self._random.random()

    def randint(self, low: int, high: int) -> int:
        """Return an integer in the inclusive range ``[low, high]``."""
        return self._random.randint(low, high)

    def weighted_choice(self, population: Sequence[_T], weights: Sequence[float]) -> _T:
        """Return a deterministic choice from *population* biased by *weights*."""
        if not population:
            msg = "Cannot choose from an empty population."
            raise ValueError(msg)
        if len(population) != len(weights):
            msg = "Population and weights must have the same length."
            raise ValueError(msg)
        return self._random.choices(population, weights=weights, k=1)[0]


__all__ = ["DeterministicRandomService"]
