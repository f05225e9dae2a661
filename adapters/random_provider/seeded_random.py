"""
Adapter: SeededRandomProvider
Deterministyczna losowość — ten sam seed daje tę samą sekwencję.
"""
from __future__ import annotations

import random


class SeededRandomProvider:
    """
    Provider z ziarnem, do powtarzalnych ewaluacji i testów.
    Nie jest bezpieczny dla wielu wątków — jeden provider na wątek.
    """

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._random = random.Random(seed)

    def uniform01(self) -> float:
        return self._random.random()

    def uniform_below(self, max: float) -> float:
        if not max > 0:
            return 0.0
        return self._random.random() * max

    def uniform_int_below(self, max: int) -> int:
        if max <= 0:
            return 0
        return self._random.randrange(max)
