"""
Randomness sources for the shuffle.

The shuffle never touches the process-wide ``random`` module. It asks a
RandomSource for an index instead, so a session can be replayed from a seed
and tests can script every draw.
"""

import random
from abc import ABC, abstractmethod
from typing import Optional, Sequence


class RandomSource(ABC):
    """Provides uniformly distributed indexes."""

    @abstractmethod
    def next_index(self, n: int) -> int:
        """Return an integer in [0, n). n is always >= 1."""


class SeededRandomSource(RandomSource):
    def __init__(self, seed: Optional[int] = None):
        self.random = random.Random(seed)

    def next_index(self, n: int) -> int:
        return self.random.randrange(n)


class ScriptedRandomSource(RandomSource):
    """
    Replays a fixed sequence of draws, cycling when exhausted.

    Each scripted value is reduced modulo ``n`` so a script stays valid as
    the pool shrinks.
    """

    def __init__(self, values: Sequence[int]):
        if not values:
            raise ValueError("ScriptedRandomSource needs at least one value")
        self.values = list(values)
        self.position = 0

    def next_index(self, n: int) -> int:
        value = self.values[self.position % len(self.values)]
        self.position += 1
        return value % n
