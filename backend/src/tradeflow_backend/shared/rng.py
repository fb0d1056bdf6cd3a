"""Deterministic random helpers used across the game logic."""

from __future__ import annotations

from collections.abc import Sequence  # noqa: TC003
from random import Random
from typing import TypeVar

_T = TypeVar("_T")


class DeterministicRandomService:
    """Thin wrapper around :class:`random.Random` providing deterministic utilities."""

    def __init__(self, seed: int | None = None) -> None:
        self._seed = seed
        self._random = Random(seed)  # noqa: S311

    @property
    def seed(self) -> int | None:
        """Return the base seed for the service."""
        return self._seed

    def reseed(self, seed: int | None) -> None:
        """Reset the random generator to a new seed."""
        self._seed = seed
        self._random = Random(seed)  # noqa: S311

    def unit(self) -> float:
        """Return a float drawn uniformly from ``[0, 1)``."""
        return self._random.random()

    def centered(self, spread: float) -> float:
        """Return a value in ``[-spread / 2, spread / 2)`` centred on zero."""
        return (self._random.random() - 0.5) * spread

    def randint(self, low: int, high: int) -> int:
        """Return an integer in the inclusive range ``[low, high]``."""
        return self._random.randint(low, high)

    def choice(self, population: Sequence[_T]) -> _T:
        """Return a deterministic choice from *population*."""
        if not population:
            msg = "Cannot choose from an empty population."
            raise ValueError(msg)
        return population[self._random.randrange(len(population))]

    def sample(self, population: Sequence[_T], count: int) -> tuple[_T, ...]:
        """Return *count* distinct items drawn from *population*."""
        count = max(0, min(count, len(population)))
        return tuple(self._random.sample(list(population), count))


__all__ = ["DeterministicRandomService"]
