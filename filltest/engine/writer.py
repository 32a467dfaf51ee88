"""Capacity writer: fills the volume with seeded pseudo-random files.

The large-block phase writes files of ``file_size_mib`` one-MiB blocks until a
file limit is reached or the volume is full. The optional top-off phase then
continues the slot numbering with files of at most 2050 small blocks until
no more data fits.
"""

from __future__ import annotations

import errno
import os
import time
from enum import Enum
from typing import BinaryIO

from filltest.core.generator import StreamGenerator
from filltest.core.slots import LARGE_BLOCK_SIZE, TOP_OFF_BLOCK_COUNT, FileSlot
from filltest.engine.context import PhaseResult, RunContext, StopReason
from filltest.models import Operation, Phase
from filltest.storage.buffers import UnitBuffer
from filltest.storage.file_io import open_for_write
from filltest.utils.events import (
    FileCompletedEvent,
    FileDiscardedEvent,
    IOStatusEvent,
    PhaseCompletedEvent,
    PhaseStartedEvent,
)
from filltest.utils.logging_config import LoggingContext, get_logger

# errno values meaning "no more data fits", as opposed to a hard I/O error
VOLUME_FULL_ERRNOS = frozenset(
    code
    for code in (errno.ENOSPC, getattr(errno, "EDQUOT", None), errno.EFBIG)
    if code is not None
)


class WriteStatus(Enum):
    """Outcome of writing one file."""

    COMPLETE = "complete"
    VOLUME_FULL = "volume_full"
    ERROR = "error"
    OPEN_FAILED = "open_failed"


class CapacityWriter:
    """Writes the large-block phase and, if enabled, the top-off phase."""

    def __init__(self, context: RunContext):
        self.context = context
        self.config = context.config
        self.slots = context.write_slots
        self.logger = get_logger(__name__)
        self.results: list[PhaseResult] = []

    def run(self) -> list[PhaseResult]:
        """Run every enabled write phase and return their results."""
        self.results.append(self.write_large_phase())
        if self.config.top_off_enabled:
            self.results.append(self.write_top_off_phase())
        return self.results

    def write_large_phase(self) -> PhaseResult:
        return self._write_phase(
            Phase.LARGE,
            LARGE_BLOCK_SIZE,
            self.config.file_size_mib,
            self.config.file_limit,
        )

    def write_top_off_phase(self) -> PhaseResult:
        return self._write_phase(
            Phase.TOP_OFF,
            self.config.top_off_block_size,
            TOP_OFF_BLOCK_COUNT,
            None,
        )

    def _write_phase(
        self,
        phase: Phase,
        block_size: int,
        block_count: int,
        file_limit: int | None,
    ) -> PhaseResult:
        result = PhaseResult(phase=phase)
        buffer = UnitBuffer(block_size)
        self.context.emit(
            PhaseStartedEvent(
                phase=phase.value,
                operation=Operation.WRITE.value,
                block_size=block_size,
                seed=self.config.seed,
            )
        )

        start = time.perf_counter()
        with LoggingContext(
            f"{phase.value} write phase",
            logger=self.logger,
            phase=phase.value,
            block_size=block_size,
        ):
            while True:
                if file_limit is not None and int(self.slots) >= file_limit:
                    result.stop_reason = StopReason.LIMIT_REACHED
                    break

                status, written = self._write_file(phase, buffer, block_count)
                if written:
                    result.file_count += 1
                    result.byte_count += written

                if status is WriteStatus.VOLUME_FULL:
                    result.stop_reason = StopReason.VOLUME_FULL
                    break
                if status is WriteStatus.ERROR:
                    result.stop_reason = StopReason.IO_ERROR
                    break
                if status is WriteStatus.OPEN_FAILED:
                    result.stop_reason = StopReason.OPEN_FAILED
                    break
        result.seconds = time.perf_counter() - start

        self.context.emit(
            PhaseCompletedEvent(
                phase=phase.value,
                operation=Operation.WRITE.value,
                file_count=result.file_count,
                byte_count=result.byte_count,
                seconds=result.seconds,
            )
        )
        return result

    def _write_file(
        self,
        phase: Phase,
        buffer: UnitBuffer,
        block_count: int,
    ) -> tuple[WriteStatus, int]:
        """Write up to ``block_count`` blocks into the next slot's file.

        Returns:
            The file's status and the number of bytes that reached it

        """
        slot = self.slots.current
        path = slot.path(self.context.directory)
        try:
            handle = open_for_write(path)
        except OSError as e:
            self._report("open", slot, e.strerror or str(e))
            return WriteStatus.OPEN_FAILED, 0
        self.slots.advance()

        if self.config.unlink_immediate:
            try:
                os.unlink(path)
            except OSError as e:
                self._report("unlink", slot, e.strerror or str(e))

        generator = StreamGenerator(slot.seed(self.config.seed))
        status = WriteStatus.COMPLETE
        total = 0
        start = time.perf_counter()
        for _ in range(block_count):
            data = buffer.fill(generator)
            written, status = self._write_block(handle, data, slot)
            total += written
            if status is not WriteStatus.COMPLETE:
                break

        if total == 0:
            self._close(handle, slot)
            seconds = time.perf_counter() - start
            self.context.metrics.record(
                Operation.WRITE, phase, 0, seconds, count_file=False
            )
            self._discard(slot, phase, buffer.size)
            return status, 0

        if self.config.unlink_immediate:
            self.context.registry.append(slot, phase, handle)
        else:
            self._close(handle, slot)
        seconds = time.perf_counter() - start

        rate = self.context.metrics.record(Operation.WRITE, phase, total, seconds)
        self.context.files_written += 1
        self.logger.info(
            "Wrote %d bytes to %s",
            total,
            slot.name,
            extra={"phase": phase.value, "file_name": slot.name},
        )
        self.context.emit(
            FileCompletedEvent(
                phase=phase.value,
                operation=Operation.WRITE.value,
                file_name=slot.name,
                slot_index=slot.index,
                byte_count=total,
                seconds=seconds,
                rate_mb_s=rate,
            )
        )
        return status, total

    def _write_block(
        self,
        handle: BinaryIO,
        data: memoryview,
        slot: FileSlot,
    ) -> tuple[int, WriteStatus]:
        """Write ``data`` completely, retrying on the unwritten remainder."""
        written = 0
        size = len(data)
        while written < size:
            try:
                count = self._write_chunk(handle, data[written:])
            except OSError as e:
                self._report("write", slot, e.strerror or str(e))
                if e.errno in VOLUME_FULL_ERRNOS:
                    return written, WriteStatus.VOLUME_FULL
                return written, WriteStatus.ERROR
            if not count:
                self._report("write", slot, "no space left for more data")
                return written, WriteStatus.VOLUME_FULL
            written += count
        return written, WriteStatus.COMPLETE

    def _write_chunk(self, handle: BinaryIO, data: memoryview) -> int:
        """Issue one write call; may write fewer bytes than given."""
        return handle.write(data) or 0

    def _close(self, handle: BinaryIO, slot: FileSlot) -> None:
        try:
            handle.close()
        except OSError as e:
            self._report("close", slot, e.strerror or str(e))

    def _discard(self, slot: FileSlot, phase: Phase, block_size: int) -> None:
        """Remove a file that received no data; it is not part of the set."""
        try:
            os.unlink(slot.path(self.context.directory))
        except FileNotFoundError:
            pass
        except OSError as e:
            self._report("unlink", slot, e.strerror or str(e))
        self.logger.info("Removed empty file %s", slot.name)
        self.context.emit(
            FileDiscardedEvent(
                phase=phase.value, file_name=slot.name, block_size=block_size
            )
        )

    def _report(self, kind: str, slot: FileSlot, message: str) -> None:
        self.logger.info(
            "STATUS %s %s: %s", kind, slot.name, message, extra={"file_name": slot.name}
        )
        self.context.emit(
            IOStatusEvent(kind=kind, file_name=slot.name, message=message)
        )
