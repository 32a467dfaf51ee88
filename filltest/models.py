"""Pydantic models for filltest.

Provides validated configuration models and the value types shared by the
engine and its reporters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, model_validator

DEFAULT_SEED = 1434038592
DEFAULT_FILE_SIZE_MIB = 1024
DEFAULT_BLOCK_SIZE_IN512 = 8
SEED_MAX = 0xFFFFFFFF

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Phase(str, Enum):
    """Fill phases; a verify run replays them in the same order."""

    LARGE = "large"
    TOP_OFF = "top_off"


class Operation(str, Enum):
    """Direction of the data flow for metrics and events."""

    WRITE = "write"
    READ = "read"


class FillConfig(BaseModel):
    """Generate/write/verify configuration."""

    seed: int = Field(
        default=DEFAULT_SEED,
        ge=0,
        le=SEED_MAX,
        description="Global random seed (32-bit unsigned)",
    )
    file_size_mib: int = Field(
        default=DEFAULT_FILE_SIZE_MIB,
        ge=1,
        le=SEED_MAX,
        description="Size of each large-block file in MiB",
    )
    file_limit: int | None = Field(
        default=None,
        ge=1,
        description="Only write this number of large-block files",
    )
    top_off: bool = Field(
        default=False,
        description="Fill the remaining space with small blocks after the large-block phase",
    )
    block_size_in512: int = Field(
        default=DEFAULT_BLOCK_SIZE_IN512,
        ge=1,
        le=2048,
        description="Top-off block size in units of 512 bytes",
    )
    verify_only: bool = Field(
        default=False,
        description="Only verify existing data files",
    )
    unlink_after: bool = Field(
        default=False,
        description="Remove files after a test run without faults",
    )
    unlink_immediate: bool = Field(
        default=False,
        description="Unlink files right after creation and verify through retained handles",
    )

    @property
    def top_off_block_size(self) -> int:
        """Top-off block size in bytes."""
        return self.block_size_in512 * 512

    @property
    def top_off_enabled(self) -> bool:
        """Whether the top-off phase runs (and is replayed during verification)."""
        return self.top_off and self.file_limit is None

    @model_validator(mode="after")
    def validate_fill_modes(self):
        """A file-count limit disables the top-off phase.

        Immediate unlinking has nothing to act on when nothing is written.
        """
        if self.file_limit is not None and self.top_off:
            logger.warning(
                "File limit of %d set: small-block top-off disabled",
                self.file_limit,
            )
            self.top_off = False
        if self.verify_only and self.unlink_immediate:
            logger.warning("Verify-only run: immediate unlinking ignored")
            self.unlink_immediate = False
        return self


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    log_file: str | None = Field(None, description="Log file path")
    structured_logging: bool = Field(
        default=False,
        description="Write JSON records to the log file",
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Tag every record of a run with one correlation ID",
    )


class UIConfig(BaseModel):
    """Console output configuration."""

    multicolor: bool = Field(
        default=False,
        description="Colored, detailed output for dark backgrounds",
    )


class Config(BaseModel):
    """Main configuration model."""

    fill: FillConfig = Field(
        default_factory=FillConfig,
        description="Fill and verify configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )
    ui: UIConfig = Field(
        default_factory=UIConfig,
        description="Console output configuration",
    )


@dataclass(frozen=True)
class FaultRecord:
    """Location of one mismatching 8-byte unit."""

    file_name: str
    slot_index: int
    block_index: int
    offset: int
    block_size: int
    expected: int
    actual: int

    @property
    def position(self) -> int:
        """Absolute byte position of the unit in the file."""
        return self.block_index * self.block_size + self.offset
