"""filltest - fill a volume with pseudo-random files and verify them."""

from __future__ import annotations

__version__ = "0.8.0"

from filltest.engine.runner import FillTestRunner, RunReport
from filltest.models import Config, FaultRecord, FillConfig

__all__ = [
    "Config",
    "FaultRecord",
    "FillConfig",
    "FillTestRunner",
    "RunReport",
    "__version__",
]
