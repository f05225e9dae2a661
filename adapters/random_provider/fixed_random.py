"""
Adapter: FixedRandomProvider
Zawsze ta sama wartość — do testów formuł z random()/rand()/randf().
"""
from __future__ import annotations


class FixedRandomProvider:
    def __init__(self, value: float = 0.5) -> None:
        self.value = value

    def uniform01(self) -> float:
        return self.value

    def uniform_below(self, max: float) -> float:
        if not max > 0:
            return 0.0
        return self.value * max

    def uniform_int_below(self, max: int) -> int:
        if max <= 0:
            return 0
        return int(self.value * max)
