"""Deterministic random source.

The engine draws every random number through an object matching the
protocol:

    class RandomSource(Protocol):
        def random(self) -> float: ...                 # [0, 1)
        def random_int(self, min: int, max: int) -> int: ...  # [min, max)

SeededRNG is the production implementation: a Mulberry32 stream over a
32-bit state. Given the same seed it produces the same sequence bit for
bit as every other implementation of the same generator, which is what
makes journeys reproducible and golden tests possible. Tests inject small
stub classes instead when they need to dictate exact draws.

Seeds:
    int   reduced to unsigned 32 bits
    str   folded into 32 bits over its UTF-16 code units
          (lone surrogates included)
    None  32 bits from the operating system's CSPRNG
"""

from __future__ import annotations

import math
import secrets
from typing import Protocol

MASK32 = 0xFFFFFFFF

_GOLDEN_GAMMA = 0x6D2B79F5
_STRING_SEED_INIT = 1779033703
_STRING_SEED_MULTIPLIER = 3432918353


class RandomSource(Protocol):
    def random(self) -> float: ...

    def random_int(self, min: int, max: int) -> int: ...


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply."""
    return (a * b) & MASK32


def _utf16_units(text: str) -> list[int]:
    data = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]


def hash_seed(seed: str) -> int:
    """Fold a string seed into an unsigned 32-bit state."""
    units = _utf16_units(seed)
    h = _STRING_SEED_INIT ^ len(units)
    for unit in units:
        h = _imul(h ^ unit, _STRING_SEED_MULTIPLIER)
        h = ((h << 13) | (h >> 19)) & MASK32
    return h


class SeededRNG:
    """Mulberry32 generator.

    Args:
        seed: int, str or None. ``seed`` is kept as given so callers can
              report which seed produced a journey.
    """

    def __init__(self, seed: int | str | None = None) -> None:
        if seed is None:
            state = secrets.randbits(32)
        elif isinstance(seed, str):
            state = hash_seed(seed)
        else:
            state = int(seed) & MASK32
        self._state = state
        self.seed = seed

    @property
    def state(self) -> int:
        return self._state

    def random(self) -> float:
        """Return a float in [0, 1)."""
        self._state = (self._state + _GOLDEN_GAMMA) & MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / 4294967296

    def random_int(self, min: int, max: int) -> int:
        """Return an integer in [min, max)."""
        return math.floor(self.random() * (max - min)) + min

    def __repr__(self) -> str:
        return f"SeededRNG(seed={self.seed!r})"
