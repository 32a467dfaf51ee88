"""Pytest configuration and shared fixtures for filltest tests."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from filltest.config.config import reset_config
from filltest.core.generator import StreamGenerator
from filltest.core.slots import FileSlot
from filltest.engine.context import RunContext
from filltest.models import FillConfig
from filltest.storage.buffers import UnitBuffer
from filltest.utils.events import ALL_EVENTS, Event, EventBus, EventHandler

MIB = 1024 * 1024


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("slow", "marks tests as slow (deselect with '-m \"not slow\"')"),
        ("integration", "marks tests as integration tests"),
        ("unit", "marks tests as unit tests"),
        ("core", "marks tests as core functionality tests"),
        ("storage", "marks tests as storage/buffer tests"),
        ("engine", "marks tests as write/verify engine tests"),
        ("monitoring", "marks tests as monitoring tests"),
        ("observability", "marks tests as logging and event tests"),
        ("config", "marks tests as configuration tests"),
        ("cli", "marks tests as CLI tests"),
        ("property", "marks tests as property-based tests"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path_factory):
    """Keep user config files and FILLTEST_* variables out of the tests."""
    for name in list(os.environ):
        if name.startswith("FILLTEST_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)


@pytest.fixture(autouse=True)
def _reset_global_config():
    yield
    reset_config()


class RecordingHandler(EventHandler):
    """Event handler that keeps every event it sees."""

    def __init__(self):
        super().__init__("recorder")
        self.events: list[Event] = []

    def handle(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[Event]:
        return [e for e in self.events if e.event_type == event_type]


@pytest.fixture
def recorder():
    return RecordingHandler()


@pytest.fixture
def event_bus(recorder):
    bus = EventBus()
    bus.register_handler(ALL_EVENTS, recorder)
    return bus


@pytest.fixture
def small_config():
    """Two 1 MiB files."""
    return FillConfig(file_size_mib=1, file_limit=2)


@pytest.fixture
def make_context(tmp_path, event_bus):
    """Factory for run contexts working in ``tmp_path``."""
    contexts: list[RunContext] = []

    def _make(config: FillConfig, directory: Path | None = None) -> RunContext:
        context = RunContext(
            config=config, directory=directory or tmp_path, bus=event_bus
        )
        contexts.append(context)
        return context

    yield _make
    for context in contexts:
        context.registry.close_all()


def expected_bytes(seed: int, slot_index: int, length: int) -> bytes:
    """Payload the writer produces for ``slot_index`` (length multiple of 8)."""
    buffer = UnitBuffer(length)
    buffer.fill(StreamGenerator(FileSlot(slot_index).seed(seed)))
    return bytes(buffer.view())


def write_expected_file(
    directory: Path, seed: int, slot_index: int, length: int
) -> Path:
    """Create a data file with correct contents without running the writer."""
    path = FileSlot(slot_index).path(directory)
    path.write_bytes(expected_bytes(seed, slot_index, length))
    return path


def flip_byte(path: Path, position: int) -> None:
    """Invert one byte of ``path`` in place."""
    with open(path, "r+b") as f:
        f.seek(position)
        value = f.read(1)[0]
        f.seek(position)
        f.write(bytes([value ^ 0xFF]))


@pytest.fixture
def payload():
    """``payload(seed, slot_index, length)`` -> bytes the writer produces."""
    return expected_bytes


@pytest.fixture
def write_expected():
    """``write_expected(directory, seed, slot_index, length)`` -> Path."""
    return write_expected_file


@pytest.fixture
def corrupt():
    """``corrupt(path, position)`` inverts one byte."""
    return flip_byte
