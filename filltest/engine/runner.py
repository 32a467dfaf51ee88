"""Top-level orchestration of a fill test run."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from filltest.engine.cleanup import remove_random_files
from filltest.engine.context import PhaseResult, RunContext
from filltest.engine.verifier import Verifier
from filltest.engine.writer import CapacityWriter
from filltest.models import FaultRecord, FillConfig
from filltest.monitoring.metrics import MetricsAggregator
from filltest.utils.events import (
    EventBus,
    FilesRemovedEvent,
    RunCompletedEvent,
    RunStartedEvent,
)
from filltest.utils.logging_config import LoggingContext, get_logger


@dataclass
class RunReport:
    """Everything a reporter needs once a run is over."""

    directory: Path
    seed: int
    verify_only: bool
    files_written: int
    files_read: int
    faults: list[FaultRecord]
    metrics: MetricsAggregator
    write_phases: list[PhaseResult] = field(default_factory=list)
    verify_passes: list[PhaseResult] = field(default_factory=list)
    removed_before: int = 0
    removed_after: int = 0
    seconds: float = 0.0

    @property
    def fault_count(self) -> int:
        return len(self.faults)

    @property
    def passed(self) -> bool:
        return not self.faults

    def to_dict(self) -> dict[str, Any]:
        return {
            "directory": str(self.directory),
            "seed": self.seed,
            "verify_only": self.verify_only,
            "files_written": self.files_written,
            "files_read": self.files_read,
            "fault_count": self.fault_count,
            "removed_before": self.removed_before,
            "removed_after": self.removed_after,
            "seconds": self.seconds,
            "metrics": self.metrics.snapshot(),
        }


class FillTestRunner:
    """Clears old data, writes, verifies and optionally cleans up."""

    def __init__(
        self,
        config: FillConfig,
        directory: Path | str = ".",
        bus: EventBus | None = None,
    ):
        """Initialize runner.

        Args:
            config: Fill configuration
            directory: Directory holding the data files
            bus: Event bus for progress reporting (a private one if None)

        """
        self.config = config
        self.directory = Path(directory)
        self.bus = bus or EventBus()
        self.logger = get_logger(__name__)

    def run(self) -> RunReport:
        """Execute one run; I/O trouble ends phases, never the run."""
        context = RunContext(config=self.config, directory=self.directory, bus=self.bus)
        report = RunReport(
            directory=self.directory,
            seed=self.config.seed,
            verify_only=self.config.verify_only,
            files_written=0,
            files_read=0,
            faults=context.faults,
            metrics=context.metrics,
        )
        context.emit(
            RunStartedEvent(
                directory=str(self.directory),
                seed=self.config.seed,
                verify_only=self.config.verify_only,
            )
        )

        start = time.perf_counter()
        with context.registry, LoggingContext(
            "fill test run",
            logger=self.logger,
            seed=self.config.seed,
            verify_only=self.config.verify_only,
        ):
            if not self.config.verify_only:
                report.removed_before = remove_random_files(self.directory)
                if report.removed_before:
                    context.emit(
                        FilesRemovedEvent(count=report.removed_before, reason="stale")
                    )
                report.write_phases = CapacityWriter(context).run()

            report.verify_passes = Verifier(context).run()

            if self.config.unlink_after and not self.config.unlink_immediate:
                if context.faults:
                    self.logger.warning(
                        "Keeping data files: %d faults found", context.fault_count
                    )
                else:
                    report.removed_after = remove_random_files(self.directory)
                    context.emit(
                        FilesRemovedEvent(count=report.removed_after, reason="verified")
                    )
        report.seconds = time.perf_counter() - start

        report.files_written = context.files_written
        report.files_read = context.files_read
        context.emit(
            RunCompletedEvent(
                fault_count=report.fault_count,
                files_written=report.files_written,
                files_read=report.files_read,
                seconds=report.seconds,
            )
        )
        return report
