"""Byte and time accounting for write and read phases.

Gross totals include every phase. Net totals leave out the small-block
top-off phase, whose throughput says little about sustained speed, and are
the ones speed summaries are computed from.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from filltest.models import Operation, Phase

MB = 1_000_000


def timer_resolution() -> float:
    """Resolution of the clock used to time I/O, in seconds."""
    return time.get_clock_info("perf_counter").resolution


def throughput_mb_s(
    byte_count: float,
    seconds: float,
    resolution: float | None = None,
) -> float | None:
    """Return the rate in MB/s, or None when ``seconds`` is too short to measure.

    Args:
        byte_count: Bytes transferred
        seconds: Elapsed time
        resolution: Threshold at or below which no rate is computed
            (default: the timer resolution)

    """
    if resolution is None:
        resolution = timer_resolution()
    if seconds <= resolution:
        return None
    return byte_count / MB / seconds


@dataclass
class TransferTotals:
    """Cumulative bytes, seconds and file count for one operation."""

    byte_count: int = 0
    seconds: float = 0.0
    file_count: int = 0

    def add(self, byte_count: int, seconds: float, count_file: bool = True) -> None:
        self.byte_count += byte_count
        self.seconds += seconds
        if count_file:
            self.file_count += 1

    @property
    def rate_mb_s(self) -> float | None:
        return throughput_mb_s(self.byte_count, self.seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bytes": self.byte_count,
            "seconds": self.seconds,
            "files": self.file_count,
            "rate_mb_s": self.rate_mb_s,
        }


class MetricsAggregator:
    """Accumulates gross and net totals for writes and reads."""

    def __init__(self) -> None:
        self.gross: dict[Operation, TransferTotals] = {
            Operation.WRITE: TransferTotals(),
            Operation.READ: TransferTotals(),
        }
        self.net: dict[Operation, TransferTotals] = {
            Operation.WRITE: TransferTotals(),
            Operation.READ: TransferTotals(),
        }

    def record(
        self,
        operation: Operation,
        phase: Phase,
        byte_count: int,
        seconds: float,
        count_file: bool = True,
    ) -> float | None:
        """Account one file and return its own rate (None if too short).

        A discarded file still costs time; pass ``count_file=False`` to book
        its seconds without counting it.
        """
        self.gross[operation].add(byte_count, seconds, count_file)
        if phase is Phase.LARGE:
            self.net[operation].add(byte_count, seconds, count_file)
        return throughput_mb_s(byte_count, seconds)

    @property
    def bytes_written(self) -> int:
        return self.gross[Operation.WRITE].byte_count

    @property
    def bytes_read(self) -> int:
        return self.gross[Operation.READ].byte_count

    @property
    def seconds_writing(self) -> float:
        return self.gross[Operation.WRITE].seconds

    @property
    def seconds_reading(self) -> float:
        return self.gross[Operation.READ].seconds

    def rate_mb_s(self, operation: Operation, net: bool = True) -> float | None:
        """Aggregate rate for ``operation``; net totals unless ``net`` is False."""
        totals = self.net if net else self.gross
        return totals[operation].rate_mb_s

    def snapshot(self) -> dict[str, Any]:
        """Return all totals as a plain dictionary."""
        return {
            "gross": {op.value: t.to_dict() for op, t in self.gross.items()},
            "net": {op.value: t.to_dict() for op, t in self.net.items()},
        }
