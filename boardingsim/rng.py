"""
Seeded pseudo-random stream (MINSTD Lehmer generator).

Every draw is a pure function of the seed and the call order, so passenger
generation and randomised boarding orders replay exactly for a given seed.
"""

import math
from typing import MutableSequence, Sequence, TypeVar

T = TypeVar('T')

MULTIPLIER = 48271
MODULUS = 2147483647  # 2^31 - 1


class DeterministicSequence:
    """
    Multiplicative linear congruential generator.

    seed' = (48271 * seed) mod (2^31 - 1), and next() returns seed' / (2^31 - 1).
    """

    def __init__(self, seed: int = 12345):
        self.seed = seed
        self.initial_seed = seed

    def reset(self):
        """Restore the originally supplied seed."""
        self.seed = self.initial_seed

    def set_seed(self, seed: int):
        self.seed = seed
        self.initial_seed = seed

    def next(self) -> float:
        """Next value in [0, 1)."""
        self.seed = (MULTIPLIER * self.seed) % MODULUS
        return self.seed / MODULUS

    def next_int(self, low: int, high: int) -> int:
        """Integer in [low, high], both inclusive."""
        return math.floor(self.next() * (high - low + 1)) + low

    def pick(self, items: Sequence[T]) -> T:
        return items[self.next_int(0, len(items) - 1)]

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """In-place Fisher-Yates, walking from the last index down to 1."""
        for i in range(len(items) - 1, 0, -1):
            j = self.next_int(0, i)
            items[i], items[j] = items[j], items[i]
        return items

    def __repr__(self) -> str:
        return f"DeterministicSequence(seed={self.initial_seed}, state={self.seed})"
