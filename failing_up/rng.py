# failing_up/rng.py
from __future__ import annotations

import random
import time
import zlib
from typing import Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_TWO_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, low word only."""
    return (a * b) & _MASK32


class SeededRandom:
    """
    mulberry32: a 32-bit mix-and-mutate generator.

    The whole state is one unsigned 32-bit integer, so a seed reproduces the
    same stream on every platform. Nothing in the engine touches `random`
    directly; every roll goes through an instance of this class that the
    caller passes in.
    """

    def __init__(self, seed: int):
        self.seed = int(seed) & _MASK32
        self._state = self.seed

    def _next_u32(self) -> int:
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t = ((t + _imul(t ^ (t >> 7), t | 61)) & _MASK32) ^ t
        return (t ^ (t >> 14)) & _MASK32

    def next(self) -> float:
        """Float in [0, 1)."""
        return self._next_u32() / _TWO_32

    def next_int(self, lo: int, hi: int) -> int:
        """Integer in [lo, hi], both ends inclusive."""
        return int(self.next() * (hi - lo + 1)) + lo if hi >= lo else lo

    def next_float(self, lo: float, hi: float) -> float:
        return self.next() * (hi - lo) + lo

    def chance(self, probability: float) -> bool:
        return self.next() < probability

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise IndexError("cannot choose from an empty sequence")
        return seq[self.next_int(0, len(seq) - 1)]


def create(seed: int) -> SeededRandom:
    return SeededRandom(seed)


def turn_rng(seed: int, week: int) -> SeededRandom:
    """The generator for one resolved week: seed + week, like every replay expects."""
    return SeededRandom(seed + week)


def stream_rng(seed: int, week: int, tag: str) -> SeededRandom:
    """
    An independent stream for one subsystem in one week. Its draws never shift
    the turn stream, so adding a subsystem keeps old replays intact.
    """
    # crc32, not hash(): hash() is salted per process
    return SeededRandom((seed + week) ^ zlib.crc32(tag.encode("utf-8")))


def generate_seed() -> int:
    # Only used when a new game is created without an explicit seed.
    return (time.time_ns() // 1_000_000 ^ random.getrandbits(32)) & _MASK32
