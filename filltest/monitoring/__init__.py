"""Throughput accounting."""

from __future__ import annotations

from filltest.monitoring.metrics import (
    MB,
    MetricsAggregator,
    TransferTotals,
    throughput_mb_s,
    timer_resolution,
)

__all__ = [
    "MB",
    "MetricsAggregator",
    "TransferTotals",
    "throughput_mb_s",
    "timer_resolution",
]
