"""
Adapter: SystemRandomProvider
Implementuje port RandomProvider — domyślne źródło losowości.

Każdy wątek dostaje własny generator random.Random (threading.local),
więc równoległe ewaluacje nigdy nie współdzielą stanu generatora.
"""
from __future__ import annotations

import random
import threading


class SystemRandomProvider:
    """Niezasiewany provider, osobny generator per wątek."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _generator(self) -> random.Random:
        gen = getattr(self._local, "generator", None)
        if gen is None:
            gen = random.Random()
            self._local.generator = gen
        return gen

    # -- RandomProvider protocol -------------------------------------------

    def uniform01(self) -> float:
        return self._generator().random()

    def uniform_below(self, max: float) -> float:
        if not max > 0:
            return 0.0
        return self._generator().random() * max

    def uniform_int_below(self, max: int) -> int:
        if max <= 0:
            return 0
        return self._generator().randrange(max)
