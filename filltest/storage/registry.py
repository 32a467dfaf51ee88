"""Registry of open handles kept for files unlinked right after creation.

In immediate-unlink mode a file has no directory entry left by the time it is
verified; its data is only reachable through the handle the writer opened.
The writer appends every such handle here and the verifier consumes them in
the same order.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from filltest.core.slots import FileSlot
from filltest.models import Phase
from filltest.utils.exceptions import RegistryExhaustedError
from filltest.utils.logging_config import get_logger


@dataclass
class RegisteredFile:
    """An unlinked file and the handle that still reaches its data."""

    slot: FileSlot
    phase: Phase
    handle: BinaryIO

    @property
    def name(self) -> str:
        return self.slot.name


class DescriptorRegistry:
    """Append-only sequence of open handles indexed by registration order."""

    def __init__(self) -> None:
        self._entries: list[RegisteredFile] = []
        self.logger = get_logger(__name__)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RegisteredFile]:
        return iter(self._entries)

    def append(self, slot: FileSlot, phase: Phase, handle: BinaryIO) -> int:
        """Retain ``handle`` for ``slot`` and return its 0-based position."""
        self._entries.append(RegisteredFile(slot=slot, phase=phase, handle=handle))
        self.logger.debug(
            "Retained handle %d for unlinked file %s", len(self._entries) - 1, slot.name
        )
        return len(self._entries) - 1

    def get(self, position: int) -> RegisteredFile:
        """Return the entry registered at ``position``.

        Raises:
            RegistryExhaustedError: No entry exists at that position

        """
        if position < 0 or position >= len(self._entries):
            msg = f"No retained handle at position {position}"
            raise RegistryExhaustedError(msg, {"registered": len(self._entries)})
        return self._entries[position]

    def close_all(self) -> int:
        """Close every retained handle and empty the registry."""
        closed = 0
        for entry in self._entries:
            with contextlib.suppress(OSError):
                entry.handle.close()
                closed += 1
        self._entries.clear()
        return closed

    def __enter__(self) -> DescriptorRegistry:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close_all()
        return False
