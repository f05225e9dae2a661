"""
Random provider adapters package.

Public import:
    from adapters.random_provider import SystemRandomProvider, SeededRandomProvider
"""

from __future__ import annotations

from typing import Optional

from adapters.random_provider.fixed_random import FixedRandomProvider
from adapters.random_provider.seeded_random import SeededRandomProvider
from adapters.random_provider.system_random import SystemRandomProvider
from ports.random_provider import RandomProvider


def build_random_provider(seed: Optional[int] = None) -> RandomProvider:
    """Seed → SeededRandomProvider, brak seeda → SystemRandomProvider."""
    if seed is None:
        return SystemRandomProvider()
    return SeededRandomProvider(seed)


__all__ = [
    "FixedRandomProvider",
    "SeededRandomProvider",
    "SystemRandomProvider",
    "build_random_provider",
]
