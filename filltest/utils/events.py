"""Event system for filltest.

The engine never formats console output. It emits typed events on an
``EventBus`` and whoever renders a run (the CLI reporter, tests, a log
collector) registers an ``EventHandler`` for the event types it cares about.

Dispatch is synchronous: ``emit`` returns after every handler has run, so
ordering on the bus is exactly the order of the engine's operations.
"""

from __future__ import annotations

import json
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from filltest.utils.logging_config import get_logger


class EventType(Enum):
    """Built-in event types."""

    RUN_STARTED = "run_started"
    RUN_COMPLETED = "run_completed"

    PHASE_STARTED = "phase_started"
    PHASE_COMPLETED = "phase_completed"

    FILE_WRITTEN = "file_written"
    FILE_DISCARDED = "file_discarded"
    FILE_VERIFIED = "file_verified"
    FILES_REMOVED = "files_removed"

    FAULT_DETECTED = "fault_detected"
    IO_STATUS = "io_status"


ALL_EVENTS = "*"


@dataclass
class Event:
    """Base event class."""

    event_type: str = ""
    timestamp: float = field(default_factory=time.time)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    source: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "event_type": self.event_type,
            "timestamp": self.timestamp,
            "event_id": self.event_id,
            "source": self.source,
            "data": self.data,
        }

    def to_json(self) -> str:
        """Convert event to JSON string."""
        return json.dumps(self.to_dict(), default=str)


@dataclass
class RunStartedEvent(Event):
    """Event emitted before anything touches the volume."""

    directory: str = ""
    seed: int = 0
    verify_only: bool = False

    def __post_init__(self):
        """Initialize event type and data."""
        self.event_type = EventType.RUN_STARTED.value
        self.data.update(
            {
                "directory": self.directory,
                "seed": self.seed,
                "verify_only": self.verify_only,
            },
        )


@dataclass
class PhaseStartedEvent(Event):
    """Event emitted when a write phase or a verify pass begins."""

    phase: str = ""
    operation: str = ""
    block_size: int = 0
    seed: int = 0

    def __post_init__(self):
        """Initialize event type and data."""
        self.event_type = EventType.PHASE_STARTED.value
        self.data.update(
            {
                "phase": self.phase,
                "operation": self.operation,
                "block_size": self.block_size,
                "seed": self.seed,
            },
        )


@dataclass
class FileCompletedEvent(Event):
    """Event emitted when one file has been written or verified.

    ``rate_mb_s`` is None when the elapsed time was too short to measure.
    """

    phase: str = ""
    operation: str = ""
    file_name: str = ""
    slot_index: int = 0
    byte_count: int = 0
    seconds: float = 0.0
    rate_mb_s: float | None = None
    fault_count: int = 0

    def __post_init__(self):
        """Initialize event type and data."""
        self.event_type = (
            EventType.FILE_WRITTEN.value
            if self.operation == "write"
            else EventType.FILE_VERIFIED.value
        )
        self.data.update(
            {
                "phase": self.phase,
                "operation": self.operation,
                "file_name": self.file_name,
                "slot_index": self.slot_index,
                "byte_count": self.byte_count,
                "seconds": self.seconds,
                "rate_mb_s": self.rate_mb_s,
                "fault_count": self.fault_count,
            },
        )


@dataclass
class FileDiscardedEvent(Event):
    """Event emitted when a file received no data and was deleted."""

    phase: str = ""
    file_name: str = ""
    block_size: int = 0

    def __post_init__(self):
        """Initialize event type and data."""
        self.event_type = EventType.FILE_DISCARDED.value
        self.data.update(
            {
                "phase": self.phase,
                "file_name": self.file_name,
                "block_size": self.block_size,
            },
        )


@dataclass
class FaultDetectedEvent(Event):
    """Event emitted for every mismatching 8-byte unit."""

    file_name: str = ""
    block_index: int = 0
    offset: int = 0
    position: int = 0
    expected: int = 0
    actual: int = 0

    def __post_init__(self):
        """Initialize event type and data."""
        self.event_type = EventType.FAULT_DETECTED.value
        self.data.update(
            {
                "file_name": self.file_name,
                "block_index": self.block_index,
                "offset": self.offset,
                "position": self.position,
                "expected": self.expected,
                "actual": self.actual,
            },
        )


@dataclass
class IOStatusEvent(Event):
    """Event emitted when an I/O condition ends a file or a phase.

    ``kind`` is one of ``open``, ``write``, ``read``, ``seek``, ``close``,
    ``unlink`` or ``exhausted``.
    """

    kind: str = ""
    file_name: str = ""
    message: str = ""

    def __post_init__(self):
        """Initialize event type and data."""
        self.event_type = EventType.IO_STATUS.value
        self.data.update(
            {
                "kind": self.kind,
                "file_name": self.file_name,
                "message": self.message,
            },
        )


@dataclass
class PhaseCompletedEvent(Event):
    """Event emitted when a write phase or a verify pass ends."""

    phase: str = ""
    operation: str = ""
    file_count: int = 0
    byte_count: int = 0
    seconds: float = 0.0

    def __post_init__(self):
        """Initialize event type and data."""
        self.event_type = EventType.PHASE_COMPLETED.value
        self.data.update(
            {
                "phase": self.phase,
                "operation": self.operation,
                "file_count": self.file_count,
                "byte_count": self.byte_count,
                "seconds": self.seconds,
            },
        )


@dataclass
class FilesRemovedEvent(Event):
    """Event emitted after random files were removed from the directory."""

    count: int = 0
    reason: str = ""

    def __post_init__(self):
        """Initialize event type and data."""
        self.event_type = EventType.FILES_REMOVED.value
        self.data.update({"count": self.count, "reason": self.reason})


@dataclass
class RunCompletedEvent(Event):
    """Event emitted once the run report is final."""

    fault_count: int = 0
    files_written: int = 0
    files_read: int = 0
    seconds: float = 0.0

    def __post_init__(self):
        """Initialize event type and data."""
        self.event_type = EventType.RUN_COMPLETED.value
        self.data.update(
            {
                "fault_count": self.fault_count,
                "files_written": self.files_written,
                "files_read": self.files_read,
                "seconds": self.seconds,
            },
        )


class EventHandler(ABC):
    """Base class for event handlers."""

    def __init__(self, name: str):
        """Initialize event handler."""
        self.name = name
        self.logger = get_logger(f"event_handler.{name}")

    @abstractmethod
    def handle(self, event: Event) -> None:
        """Handle an event."""

    def can_handle(self, _event: Event) -> bool:
        """Check if this handler can handle the event."""
        return True


class EventBus:
    """Synchronous event bus dispatching events to registered handlers."""

    def __init__(self, max_replay_events: int = 1000):
        """Initialize event bus.

        Args:
            max_replay_events: Number of recent events kept for inspection

        """
        self.handlers: dict[str, list[EventHandler]] = {}
        self.replay_buffer: list[Event] = []
        self.max_replay_events = max_replay_events
        self.logger = get_logger(__name__)
        self.stats = {
            "events_processed": 0,
            "handler_errors": 0,
            "handlers_registered": 0,
        }

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        """Register an event handler.

        Args:
            event_type: Type of event to handle, or ``"*"`` for every event
            handler: Handler instance

        """
        self.handlers.setdefault(event_type, []).append(handler)
        self.stats["handlers_registered"] += 1
        self.logger.debug(
            "Registered handler '%s' for event type '%s'",
            handler.name,
            event_type,
        )

    def unregister_handler(self, event_type: str, handler: EventHandler) -> None:
        """Unregister an event handler."""
        handlers = self.handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            self.stats["handlers_registered"] -= 1

    def emit(self, event: Event) -> None:
        """Dispatch an event to every matching handler.

        A handler that raises is logged and skipped; the emitter is never
        interrupted by a reporting failure.
        """
        self.replay_buffer.append(event)
        if len(self.replay_buffer) > self.max_replay_events:
            del self.replay_buffer[0]

        handlers = self.handlers.get(event.event_type, []) + self.handlers.get(
            ALL_EVENTS, []
        )
        for handler in handlers:
            if not handler.can_handle(event):
                continue
            try:
                handler.handle(event)
            except Exception:
                self.stats["handler_errors"] += 1
                self.logger.exception(
                    "Handler '%s' failed on event '%s'",
                    handler.name,
                    event.event_type,
                )
        self.stats["events_processed"] += 1

    def get_replay_events(self, event_type: str | None = None) -> list[Event]:
        """Return buffered events, optionally filtered by type."""
        if event_type is None:
            return list(self.replay_buffer)
        return [e for e in self.replay_buffer if e.event_type == event_type]

    def get_stats(self) -> dict[str, Any]:
        """Get event bus statistics."""
        return {
            **self.stats,
            "replay_buffer_size": len(self.replay_buffer),
        }
