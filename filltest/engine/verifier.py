"""Verifier: regenerates each file's stream and compares it with the disk.

Files are replayed in the order they were written: first the large-block
files, then (when top-off is enabled) the small-block files, continuing the
slot numbering. In immediate-unlink mode the files are reached through the
handles retained by the writer instead of by name.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import BinaryIO

from filltest.core.generator import UNIT_SIZE, StreamGenerator
from filltest.core.slots import (
    LARGE_BLOCK_SIZE,
    TOP_OFF_BLOCK_COUNT,
    FileSlot,
    SlotCounter,
)
from filltest.engine.context import PhaseResult, RunContext, StopReason
from filltest.models import FaultRecord, Operation, Phase
from filltest.storage.buffers import UnitBuffer
from filltest.storage.file_io import open_for_read
from filltest.utils.events import (
    FileCompletedEvent,
    IOStatusEvent,
    PhaseCompletedEvent,
    PhaseStartedEvent,
)
from filltest.utils.exceptions import RegistryExhaustedError
from filltest.utils.logging_config import LoggingContext, get_logger


@dataclass
class _Source:
    slot: FileSlot
    handle: BinaryIO
    owned: bool


@dataclass
class _FileScan:
    byte_count: int = 0
    fault_count: int = 0
    seconds: float = 0.0
    ended_early: bool = False
    read_failed: bool = False


class Verifier:
    """Replays the write phases and reports every mismatching unit."""

    def __init__(self, context: RunContext):
        self.context = context
        self.config = context.config
        self.slots = SlotCounter()
        self.logger = get_logger(__name__)
        self.results: list[PhaseResult] = []
        self._registry_position = 0

    def run(self) -> list[PhaseResult]:
        """Run every pass that matches the write phases."""
        self.results.append(self.verify_large_pass())
        if self.config.top_off_enabled:
            self.results.append(self.verify_top_off_pass())
        return self.results

    def verify_large_pass(self) -> PhaseResult:
        return self._verify_pass(
            Phase.LARGE, LARGE_BLOCK_SIZE, self.config.file_size_mib
        )

    def verify_top_off_pass(self) -> PhaseResult:
        return self._verify_pass(
            Phase.TOP_OFF, self.config.top_off_block_size, TOP_OFF_BLOCK_COUNT
        )

    def _verify_pass(
        self,
        phase: Phase,
        block_size: int,
        block_count: int,
    ) -> PhaseResult:
        result = PhaseResult(phase=phase)
        actual = UnitBuffer(block_size)
        expected = UnitBuffer(block_size)
        self.context.emit(
            PhaseStartedEvent(
                phase=phase.value,
                operation=Operation.READ.value,
                block_size=block_size,
                seed=self.config.seed,
            )
        )

        start = time.perf_counter()
        with LoggingContext(
            f"{phase.value} verify pass",
            logger=self.logger,
            phase=phase.value,
            block_size=block_size,
        ):
            while True:
                source, stop_reason = self._acquire(phase)
                if source is None:
                    result.stop_reason = stop_reason
                    break

                try:
                    scan = self._verify_file(
                        source, phase, actual, expected, block_count
                    )
                finally:
                    if source.owned:
                        self._close(source)

                result.file_count += 1
                result.byte_count += scan.byte_count
                if scan.read_failed:
                    result.stop_reason = StopReason.IO_ERROR
                    break
                if scan.ended_early:
                    result.stop_reason = StopReason.END_OF_DATA
                    break
        result.seconds = time.perf_counter() - start

        self.context.emit(
            PhaseCompletedEvent(
                phase=phase.value,
                operation=Operation.READ.value,
                file_count=result.file_count,
                byte_count=result.byte_count,
                seconds=result.seconds,
            )
        )
        return result

    def _acquire(self, phase: Phase) -> tuple[_Source | None, StopReason | None]:
        """Obtain the next file to verify, or the reason the pass is over."""
        if self.config.unlink_immediate:
            return self._acquire_retained(phase)

        slot = self.slots.current
        # a missing large-block file still uses up its slot, so the top-off
        # pass resumes after it just as the writer did
        if phase is Phase.LARGE:
            self.slots.advance()
        path = slot.path(self.context.directory)
        try:
            handle = open_for_read(path)
        except FileNotFoundError:
            self.logger.info("No file %s, %s pass done", slot.name, phase.value)
            self.context.emit(
                IOStatusEvent(kind="open", file_name=slot.name, message="not found")
            )
            return None, StopReason.MISSING_FILE
        except OSError as e:
            self._report("open", slot.name, e.strerror or str(e))
            return None, StopReason.OPEN_FAILED
        if phase is Phase.TOP_OFF:
            self.slots.advance()
        return _Source(slot=slot, handle=handle, owned=True), None

    def _acquire_retained(
        self, phase: Phase
    ) -> tuple[_Source | None, StopReason | None]:
        try:
            entry = self.context.registry.get(self._registry_position)
        except RegistryExhaustedError:
            retained = len(self.context.registry)
            self.logger.info("Finished all %d retained handles", retained)
            self.context.emit(
                IOStatusEvent(
                    kind="exhausted",
                    message=f"finished all {retained} retained handles",
                )
            )
            return None, StopReason.REGISTRY_EXHAUSTED
        if entry.phase is not phase:
            return None, StopReason.END_OF_DATA
        self._registry_position += 1

        try:
            entry.handle.seek(0)
        except OSError as e:
            self._report("seek", entry.name, e.strerror or str(e))
            return None, StopReason.IO_ERROR
        return _Source(slot=entry.slot, handle=entry.handle, owned=False), None

    def _verify_file(
        self,
        source: _Source,
        phase: Phase,
        actual: UnitBuffer,
        expected: UnitBuffer,
        block_count: int,
    ) -> _FileScan:
        slot = source.slot
        block_size = actual.size
        generator = StreamGenerator(slot.seed(self.config.seed))
        scan = _FileScan()

        start = time.perf_counter()
        for block_index in range(block_count):
            try:
                count = actual.read_from(source.handle)
            except OSError as e:
                self._report("read", slot.name, e.strerror or str(e))
                scan.read_failed = True
                break
            if count == 0:
                scan.ended_early = True
                break
            scan.byte_count += count

            whole = count - count % UNIT_SIZE
            if whole:
                expected.fill(generator, whole)
                for offset, want, got in actual.mismatches(expected, whole):
                    scan.fault_count += 1
                    self.context.record_fault(
                        FaultRecord(
                            file_name=slot.name,
                            slot_index=slot.index,
                            block_index=block_index,
                            offset=offset,
                            block_size=block_size,
                            expected=want,
                            actual=got,
                        )
                    )
            if count != whole:
                self.logger.debug(
                    "Ignoring %d trailing bytes of %s", count - whole, slot.name
                )
            if count < block_size:
                scan.ended_early = True
                break
        scan.seconds = time.perf_counter() - start

        budget = block_count * block_size
        if scan.ended_early and scan.byte_count < budget:
            self.logger.info(
                "%s ended after %d of %d bytes",
                slot.name,
                scan.byte_count,
                budget,
                extra={"phase": phase.value, "file_name": slot.name},
            )

        rate = self.context.metrics.record(
            Operation.READ, phase, scan.byte_count, scan.seconds
        )
        self.context.files_read += 1
        self.context.emit(
            FileCompletedEvent(
                phase=phase.value,
                operation=Operation.READ.value,
                file_name=slot.name,
                slot_index=slot.index,
                byte_count=scan.byte_count,
                seconds=scan.seconds,
                rate_mb_s=rate,
                fault_count=scan.fault_count,
            )
        )
        return scan

    def _close(self, source: _Source) -> None:
        try:
            source.handle.close()
        except OSError as e:
            self._report("close", source.slot.name, e.strerror or str(e))

    def _report(self, kind: str, name: str, message: str) -> None:
        self.logger.info(
            "STATUS %s %s: %s", kind, name, message, extra={"file_name": name}
        )
        self.context.emit(IOStatusEvent(kind=kind, file_name=name, message=message))
