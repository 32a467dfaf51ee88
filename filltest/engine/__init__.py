"""Write, verify and cleanup engine."""

from __future__ import annotations

from filltest.engine.cleanup import list_random_files, remove_random_files
from filltest.engine.context import PhaseResult, RunContext, StopReason
from filltest.engine.runner import FillTestRunner, RunReport
from filltest.engine.verifier import Verifier
from filltest.engine.writer import CapacityWriter, WriteStatus

__all__ = [
    "CapacityWriter",
    "FillTestRunner",
    "PhaseResult",
    "RunContext",
    "RunReport",
    "StopReason",
    "Verifier",
    "WriteStatus",
    "list_random_files",
    "remove_random_files",
]
