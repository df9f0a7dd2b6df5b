"""Random number generation utilities for the RL playground."""

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class SeededRNG:
    """Seeded random number generator for reproducible results.

    Each instance owns its own stream so that an engine's exploration does
    not depend on the global ``random`` state.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def random(self) -> float:
        """Generate random float in [0, 1)."""
        return self._random.random()

    def choice(self, seq: Sequence[T]) -> T:
        """Choose random element from sequence."""
        return self._random.choice(seq)


def default_rng() -> SeededRNG:
    """Unseeded generator for interactive use."""
    return SeededRNG()
