"""Fixed-size I/O buffers with a typed view over 8-byte units.

One ``UnitBuffer`` holds one block. The writer fills it from a generator and
writes its byte view; the verifier reads a block into it and compares it unit
by unit against a second buffer filled from the same generator.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from filltest.core.generator import UNIT_SIZE, StreamGenerator


@dataclass
class BufferStats:
    """Statistics for buffer operations."""

    fills: int = 0
    reads: int = 0
    compares: int = 0
    mismatched_blocks: int = 0


class UnitBuffer:
    """Bounds-checked byte buffer viewed as native-order unsigned 64-bit units."""

    def __init__(self, size: int) -> None:
        """Initialize buffer.

        Args:
            size: Buffer size in bytes, a positive multiple of 8

        """
        if size <= 0 or size % UNIT_SIZE:
            msg = f"Buffer size must be a positive multiple of {UNIT_SIZE}, got {size}"
            raise ValueError(msg)
        self.size = size
        self._data = bytearray(size)
        self._bytes = memoryview(self._data)
        self._units = self._bytes.cast("Q")
        self.stats = BufferStats()

    @property
    def unit_count(self) -> int:
        return len(self._units)

    def _check_length(self, length: int | None) -> int:
        if length is None:
            return self.size
        if length < 0 or length > self.size:
            msg = f"Length {length} outside buffer of {self.size} bytes"
            raise IndexError(msg)
        return length

    def view(self, length: int | None = None) -> memoryview:
        """Return the first ``length`` bytes (default: all) as a byte view."""
        return self._bytes[: self._check_length(length)]

    def units(self, count: int | None = None) -> memoryview:
        """Return the first ``count`` units (default: all) as a ``'Q'`` view."""
        if count is None:
            return self._units
        return self._units[: self._check_length(count * UNIT_SIZE) // UNIT_SIZE]

    def fill(self, generator: StreamGenerator, length: int | None = None) -> memoryview:
        """Fill the first ``length`` bytes from ``generator``.

        Args:
            generator: Stream to draw values from; advanced by length / 8 steps
            length: Number of bytes, a multiple of 8 (default: whole buffer)

        Returns:
            Byte view over the filled prefix

        """
        length = self._check_length(length)
        if length % UNIT_SIZE:
            msg = f"Fill length must be a multiple of {UNIT_SIZE}, got {length}"
            raise ValueError(msg)
        generator.fill(self._units[: length // UNIT_SIZE])
        self.stats.fills += 1
        return self._bytes[:length]

    def read_from(self, handle: BinaryIO) -> int:
        """Read up to one buffer of data from ``handle`` with a single call.

        Returns:
            Number of bytes read; 0 at end of file

        """
        count = handle.readinto(self._bytes)
        self.stats.reads += 1
        return count or 0

    def mismatches(
        self,
        expected: UnitBuffer,
        length: int,
    ) -> Iterator[tuple[int, int, int]]:
        """Yield ``(offset, expected, actual)`` for every differing unit.

        Only whole units inside the first ``length`` bytes are compared.
        """
        length = self._check_length(length)
        if length > expected.size:
            msg = f"Expected buffer of {expected.size} bytes shorter than {length}"
            raise IndexError(msg)
        self.stats.compares += 1

        if length == self.size == expected.size:
            equal = self._data == expected._data
        else:
            equal = self._bytes[:length] == expected._bytes[:length]
        if equal:
            return

        self.stats.mismatched_blocks += 1
        actual_units = self._units
        expected_units = expected._units
        for i in range(length // UNIT_SIZE):
            if actual_units[i] != expected_units[i]:
                yield i * UNIT_SIZE, expected_units[i], actual_units[i]
