"""
Port: RandomProvider
Odpowiedzialność: źródło losowości dla intrinsics rand/randf/random.
Wstrzykiwane do parsera, podmienialne per-ewaluacja (testy deterministyczne).
"""
from typing import Protocol, runtime_checkable


@runtime_checkable
class RandomProvider(Protocol):
    def uniform01(self) -> float:
        """Returns a uniform float in [0, 1)."""
        ...

    def uniform_below(self, max: float) -> float:
        """
        Returns a uniform float in [0, max).
        Returns 0.0 when max <= 0.
        """
        ...

    def uniform_int_below(self, max: int) -> int:
        """
        Returns a uniform integer in [0, max).
        Returns 0 when max <= 0.
        """
        ...
