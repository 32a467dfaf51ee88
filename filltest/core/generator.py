"""Deterministic pseudo-random stream used as file payload.

A linear congruential generator over 64-bit state. It is not meant to be a
good source of randomness, only a fast and exactly reproducible one: the
verifier never stores written data, it regenerates it from the seed.
"""

from __future__ import annotations

MULTIPLIER = 0x27BB2EE687B0B0FD
INCREMENT = 0xB504F32D
MASK64 = (1 << 64) - 1

UNIT_SIZE = 8


def lcg_next(state: int) -> int:
    """Return the state following ``state``; it is also the next output."""
    return (MULTIPLIER * state + INCREMENT) & MASK64


class StreamGenerator:
    """Stateful cursor over the generator sequence."""

    __slots__ = ("state",)

    def __init__(self, seed: int):
        """Start a stream at ``seed`` (the first output is ``lcg_next(seed)``)."""
        self.state = seed & MASK64

    def next(self) -> int:
        """Advance one step and return the new 64-bit value."""
        self.state = (MULTIPLIER * self.state + INCREMENT) & MASK64
        return self.state

    def __iter__(self) -> StreamGenerator:
        return self

    def __next__(self) -> int:
        return self.next()

    def take(self, count: int) -> list[int]:
        """Return the next ``count`` values."""
        return [self.next() for _ in range(count)]

    def fill(self, units: memoryview) -> None:
        """Store consecutive values into every slot of a ``'Q'`` view.

        Args:
            units: Memoryview cast to unsigned 64-bit items (native order)

        """
        state = self.state
        a = MULTIPLIER
        c = INCREMENT
        mask = MASK64
        for i in range(len(units)):
            state = (a * state + c) & mask
            units[i] = state
        self.state = state
