"""Unbuffered file handles for sequential block I/O."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO

# Windows needs O_BINARY; O_SEQUENTIAL is a hint where it exists
_EXTRA_FLAGS = getattr(os, "O_BINARY", 0) | getattr(os, "O_SEQUENTIAL", 0)


def _fdopen(fd: int, mode: str) -> BinaryIO:
    try:
        return os.fdopen(fd, mode, buffering=0)
    except Exception:
        os.close(fd)
        raise


def open_for_write(path: Path) -> BinaryIO:
    """Create or truncate ``path`` (mode 0600) for reading and writing."""
    fd = os.open(path, os.O_RDWR | os.O_CREAT | os.O_TRUNC | _EXTRA_FLAGS, 0o600)
    return _fdopen(fd, "r+b")


def open_for_read(path: Path) -> BinaryIO:
    """Open an existing ``path`` read-only."""
    fd = os.open(path, os.O_RDONLY | _EXTRA_FLAGS)
    return _fdopen(fd, "rb")
