from __future__ import annotations

import random
from typing import List, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class Sampler(Protocol):
    def uniform_int(self, low: int, high: int) -> int:
        """Return an integer in ``[low, high]``."""
        ...

    def choose(self, population: Sequence[T], k: int) -> List[T]:
        """Return ``k`` distinct items from ``population``."""
        ...


class UniformSampler:
    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def uniform_int(self, low: int, high: int) -> int:
        if high < low:
            low, high = high, low
        return self._rng.randint(low, high)

    def choose(self, population: Sequence[T], k: int) -> List[T]:
        k = max(0, min(int(k), len(population)))
        return self._rng.sample(list(population), k)
