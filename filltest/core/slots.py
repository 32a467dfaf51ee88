"""File slots: canonical names, seed derivation and the slot counter.

A slot's name uses the 0-based creation index while its seed uses the same
index plus one. Files written by earlier versions of the tool follow exactly
this mapping, so it must not be "fixed".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

FILE_NAME_PREFIX = "random-"
FILE_NAME_PATTERN = re.compile(r"random-([0-9]{8})")
SEED_MASK = 0xFFFFFFFF

LARGE_BLOCK_SIZE = 1024 * 1024
SECTOR_SIZE = 512
TOP_OFF_BLOCK_COUNT = 2048 + 2


def file_name(index: int) -> str:
    """Return the canonical name of the file at 0-based ``index``."""
    return f"{FILE_NAME_PREFIX}{index:08d}"


def parse_file_name(name: str) -> int | None:
    """Return the index encoded in a canonical name, or None."""
    match = FILE_NAME_PATTERN.fullmatch(name)
    if match is None:
        return None
    return int(match.group(1))


def derive_seed(base_seed: int, seed_index: int) -> int:
    """Return the stream seed of the file with 1-based ``seed_index``.

    The sum wraps at 32 bits like the on-disk format always has.
    """
    return (base_seed + seed_index) & SEED_MASK


@dataclass(frozen=True)
class FileSlot:
    """One generated/verified file."""

    index: int

    @property
    def name(self) -> str:
        return file_name(self.index)

    @property
    def seed_index(self) -> int:
        return self.index + 1

    def seed(self, base_seed: int) -> int:
        return derive_seed(base_seed, self.seed_index)

    def path(self, directory: Path) -> Path:
        return directory / self.name


class SlotCounter:
    """Monotonic slot counter shared by consecutive phases of one direction."""

    def __init__(self, start: int = 0):
        self._next = start

    @property
    def current(self) -> FileSlot:
        """The slot the next file will use."""
        return FileSlot(self._next)

    def advance(self) -> FileSlot:
        """Consume the current slot and return it."""
        slot = FileSlot(self._next)
        self._next += 1
        return slot

    def __int__(self) -> int:
        return self._next
