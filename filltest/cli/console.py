"""Console output for the filltest CLI.

``ConsoleReporter`` renders engine events as they happen; ``print_summary``
prints the totals, the verdict and a tip for verifying the files later.
"""

from __future__ import annotations

import math
import sys
import time
from collections.abc import Callable

from rich.console import Console
from rich.markup import escape

from filltest.engine.runner import RunReport
from filltest.models import (
    DEFAULT_BLOCK_SIZE_IN512,
    DEFAULT_FILE_SIZE_MIB,
    DEFAULT_SEED,
    FillConfig,
    Operation,
    Phase,
)
from filltest.monitoring.metrics import MB
from filltest.utils.events import Event, EventHandler, EventType

TOO_SHORT = "(measured time too short)"


def create_console(multicolor: bool = False) -> Console:
    """Console on stdout; colors only in multicolor mode."""
    return Console(
        file=sys.stdout,
        no_color=not multicolor,
        highlight=False,
        legacy_windows=False,
        safe_box=True,
    )


def format_number(value: float, decimals: int = 3) -> str:
    """Format with a space as thousands separator, e.g. ``1 048.576``."""
    return f"{value:,.{decimals}f}".replace(",", " ")


def format_duration(seconds: float) -> str:
    """Format as ``   0 h 01 m 05 s 250 ms``."""
    seconds = max(0.0, seconds)
    hours = math.floor(seconds / 3600)
    minutes = math.floor((seconds - hours * 3600) / 60)
    secs = math.floor(seconds - math.floor(seconds / 60) * 60)
    millis = int((seconds - math.floor(seconds)) * 1000)
    return f"{hours:4d} h {minutes:02d} m {secs:02d} s {millis:03d} ms"


def format_rate(rate: float | None) -> str:
    if rate is None:
        return TOO_SHORT
    return f"with {rate:16.3f} MB/s"


def reuse_tip(config: FillConfig, report: RunReport) -> str | None:
    """Flags that verify this run's files later, or None if defaults suffice."""
    if config.verify_only or config.unlink_immediate:
        return None
    if report.metrics.bytes_written == 0:
        return None
    if not (
        config.top_off
        or config.seed != DEFAULT_SEED
        or config.file_size_mib != DEFAULT_FILE_SIZE_MIB
    ):
        return None

    parts = ["-v"]
    if config.file_size_mib != DEFAULT_FILE_SIZE_MIB:
        parts.append(f"-S {config.file_size_mib}")
    if config.seed != DEFAULT_SEED:
        parts.append(f"-s {config.seed}")
    if config.block_size_in512 != DEFAULT_BLOCK_SIZE_IN512 and config.top_off:
        parts.append(f"-d {config.block_size_in512}")
    elif config.top_off:
        parts.append("-z")
    return " ".join(parts)


class ConsoleReporter(EventHandler):
    """Prints one line per file plus status, fault and phase messages."""

    def __init__(self, console: Console | None = None, multicolor: bool = False):
        super().__init__("console_reporter")
        self.multicolor = multicolor
        self.console = console or create_console(multicolor)
        self.directory = ""
        self._handlers: dict[str, Callable[[Event], None]] = {
            EventType.RUN_STARTED.value: self._on_run_started,
            EventType.PHASE_STARTED.value: self._on_phase_started,
            EventType.PHASE_COMPLETED.value: self._on_phase_completed,
            EventType.FILE_WRITTEN.value: self._on_file_completed,
            EventType.FILE_VERIFIED.value: self._on_file_completed,
            EventType.FILE_DISCARDED.value: self._on_file_discarded,
            EventType.FAULT_DETECTED.value: self._on_fault,
            EventType.IO_STATUS.value: self._on_io_status,
            EventType.FILES_REMOVED.value: self._on_files_removed,
        }

    def can_handle(self, event: Event) -> bool:
        return event.event_type in self._handlers

    def handle(self, event: Event) -> None:
        handler = self._handlers.get(event.event_type)
        if handler is not None:
            handler(event)

    def _print(self, message: str, style: str | None = None) -> None:
        self.console.print(
            message, style=style if self.multicolor else None, soft_wrap=True
        )

    def _timestamp(self, label: str) -> None:
        if self.multicolor:
            self._print(f"{label}  {time.asctime()}", "bright_white")

    def _on_run_started(self, event: Event) -> None:
        self.directory = event.data["directory"]

    def _on_phase_started(self, event: Event) -> None:
        data = event.data
        if data["phase"] == Phase.TOP_OFF.value:
            if data["operation"] == Operation.WRITE.value:
                block = format_number(data["block_size"], 0)
                line = f"Filling up disk with block = {block} B"
                if self.multicolor:
                    line += " (not included in total speed stats)"
                self._print(line, "yellow")
            return

        if data["operation"] == Operation.WRITE.value:
            self._timestamp("START WRITING")
            verb, preposition = "Writing", "to"
        else:
            self._timestamp("START READING")
            verb, preposition = "Verifying", "from"
        self._print(
            f"{verb} files random-XXXXXXXX with seed {data['seed']} "
            f"{preposition} directory {escape(self.directory)}",
            "bright_white",
        )

    def _on_phase_completed(self, event: Event) -> None:
        data = event.data
        if data["phase"] == Phase.TOP_OFF.value or not self.multicolor:
            return
        if data["operation"] == Operation.WRITE.value:
            self._timestamp("END   WRITING")
        else:
            self._timestamp("END   READING")

    def _on_file_completed(self, event: Event) -> None:
        data = event.data
        writing = data["operation"] == Operation.WRITE.value
        verb, preposition = ("Wrote", "to") if writing else ("Read ", "from")
        if data["phase"] == Phase.LARGE.value:
            amount = f"{format_number(data['byte_count'] / MB):>13} MB"
        else:
            amount = f"{data['byte_count'] / 1000:13.3f} kB"
        line = (
            f"{verb} {amount} data {preposition} {data['file_name']} "
            f"{format_rate(data['rate_mb_s'])}"
        )
        self._print(line, "green" if data["fault_count"] == 0 else "red")

    def _on_file_discarded(self, event: Event) -> None:
        if not self.multicolor:
            return
        block_size = event.data["block_size"]
        if event.data["phase"] == Phase.LARGE.value:
            self._print("No space for new file ( 1 MiB block ).", "yellow")
        else:
            self._print(f"No space for new file ( {block_size} B block ).", "yellow")

    def _on_fault(self, event: Event) -> None:
        data = event.data
        self._print(
            f"ERROR! {data['file_name']} "
            f"Position: {format_number(data['position'], 0)} "
            f"BLOCK: {data['block_index']:6d} OFFSET: {data['offset']:7d}",
            "bold red",
        )

    def _on_io_status(self, event: Event) -> None:
        data = event.data
        if data["kind"] == "exhausted":
            self._print("Finished all opened file handles.", "cyan")
            return
        if data["kind"] == "open" and data["message"] == "not found":
            return
        self._print(
            f"STATUS {data['kind']} {data['file_name']}: {escape(data['message'])}",
            "yellow",
        )

    def _on_files_removed(self, event: Event) -> None:
        count = event.data["count"]
        if event.data["reason"] == "stale":
            self._print(f"Removed old files, total: {count}.", "cyan")
        else:
            self._print(f"Removed {count} files after a test without errors.", "cyan")

    def print_summary(self, report: RunReport, config: FillConfig) -> None:
        """Print totals, the verdict and the reuse tip."""
        metrics = report.metrics
        if metrics.bytes_written:
            self._print_total(
                "Wrote",
                metrics.bytes_written,
                metrics.seconds_writing,
                metrics.rate_mb_s(Operation.WRITE),
            )
        if metrics.bytes_read:
            self._print_total(
                "Read ",
                metrics.bytes_read,
                metrics.seconds_reading,
                metrics.rate_mb_s(Operation.READ),
            )
        if self.multicolor:
            duration = format_duration(report.seconds)
            self._print(f"TEST TIME  =          {duration}", "yellow")

        if report.fault_count:
            self._print(f" {report.fault_count} ERRORS found!!!!", "bold red")
        else:
            self._print("NO errors found.", "bold green")

        tip = reuse_tip(config, report)
        if tip:
            self._print("Use these parameters to test created files later:", "cyan")
            self._print(f" {tip}", "cyan")

    def _print_total(
        self, verb: str, byte_count: int, seconds: float, rate: float | None
    ) -> None:
        rate_text = TOO_SHORT if rate is None else f"{rate:16.3f} MB/s"
        self._print(
            f"{verb} {format_number(byte_count / MB):>13} MB in "
            f"{format_duration(seconds)}  {rate_text}",
            "bright_white",
        )
