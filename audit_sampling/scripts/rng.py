"""Seeded pseudo-random sources.

Selection never touches the interpreter's global random state. Every draw
comes from an explicit ``RandomSource`` created from the config seed, so the
same seed always yields the same stream.
"""

from abc import ABC, abstractmethod

import numpy as np

_MASK_32 = 0xFFFFFFFF


class RandomSource(ABC):
    """Produces uniform floats in [0, 1) from internal state."""

    @abstractmethod
    def random(self) -> float:
        pass

    def randbelow(self, n: int) -> int:
        """Uniform integer in [0, n)."""
        if n <= 0:
            raise ValueError("n must be positive")
        return min(int(self.random() * n), n - 1)


class Mulberry32(RandomSource):
    """32-bit Mulberry32 generator.

    Matches the generator used by the browser-based sampling tool, so a seed
    selects the same rows in both.
    """

    def __init__(self, seed: int):
        self._state = int(seed) & _MASK_32

    def random(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _MASK_32
        r = self._state
        r = ((r ^ (r >> 15)) * (r | 1)) & _MASK_32
        r ^= (r + (((r ^ (r >> 7)) * (r | 61)) & _MASK_32)) & _MASK_32
        return ((r ^ (r >> 14)) & _MASK_32) / 4294967296


class NumpyRandomSource(RandomSource):
    """Adapter over ``numpy.random.Generator`` (PCG64)."""

    def __init__(self, seed: int):
        self._generator = np.random.default_rng(int(seed) & _MASK_32)

    def random(self) -> float:
        return float(self._generator.random())


_SOURCES = {
    "mulberry32": Mulberry32,
    "numpy": NumpyRandomSource,
}


def rng_factory(seed: int, kind: str = "mulberry32") -> RandomSource:
    """Create a random source for the given seed.

    Args:
        seed: Integer seed
        kind: 'mulberry32' (default) or 'numpy'

    Returns:
        A fresh RandomSource
    """
    try:
        return _SOURCES[kind](seed)
    except KeyError:
        raise ValueError(f"Unknown random source: {kind}") from None
