"""Run context: the state one fill/verify run threads through its phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from filltest.core.slots import SlotCounter
from filltest.models import FaultRecord, FillConfig, Phase
from filltest.monitoring.metrics import MetricsAggregator
from filltest.storage.registry import DescriptorRegistry
from filltest.utils.events import Event, EventBus, FaultDetectedEvent
from filltest.utils.logging_config import get_logger

logger = get_logger(__name__)


class StopReason(str, Enum):
    """Why a write phase or a verify pass ended."""

    LIMIT_REACHED = "limit_reached"
    VOLUME_FULL = "volume_full"
    IO_ERROR = "io_error"
    OPEN_FAILED = "open_failed"
    END_OF_DATA = "end_of_data"
    MISSING_FILE = "missing_file"
    REGISTRY_EXHAUSTED = "registry_exhausted"


@dataclass
class PhaseResult:
    """Outcome of one write phase or verify pass."""

    phase: Phase
    file_count: int = 0
    byte_count: int = 0
    seconds: float = 0.0
    stop_reason: StopReason | None = None


@dataclass
class RunContext:
    """Configuration and shared mutable state of a single run."""

    config: FillConfig
    directory: Path
    bus: EventBus = field(default_factory=EventBus)
    registry: DescriptorRegistry = field(default_factory=DescriptorRegistry)
    metrics: MetricsAggregator = field(default_factory=MetricsAggregator)
    write_slots: SlotCounter = field(default_factory=SlotCounter)
    faults: list[FaultRecord] = field(default_factory=list)
    files_written: int = 0
    files_read: int = 0

    @property
    def fault_count(self) -> int:
        return len(self.faults)

    def emit(self, event: Event) -> None:
        if event.source is None:
            event.source = "engine"
        self.bus.emit(event)

    def record_fault(self, fault: FaultRecord) -> None:
        """Keep a fault record and announce it; never interrupts a scan."""
        self.faults.append(fault)
        logger.info(
            "Fault in %s at position %d block %d offset %d: "
            "expected %#018x, read %#018x",
            fault.file_name,
            fault.position,
            fault.block_index,
            fault.offset,
            fault.expected,
            fault.actual,
            extra={"file_name": fault.file_name},
        )
        self.emit(
            FaultDetectedEvent(
                file_name=fault.file_name,
                block_index=fault.block_index,
                offset=fault.offset,
                position=fault.position,
                expected=fault.expected,
                actual=fault.actual,
            )
        )
