"""Stream generation and file slot bookkeeping."""

from __future__ import annotations

from filltest.core.generator import StreamGenerator, lcg_next
from filltest.core.slots import FileSlot, SlotCounter, derive_seed, file_name

__all__ = [
    "FileSlot",
    "SlotCounter",
    "StreamGenerator",
    "derive_seed",
    "file_name",
    "lcg_next",
]
