"""Buffers, data file handles and retained file handles."""

from __future__ import annotations

from filltest.storage.buffers import UnitBuffer
from filltest.storage.file_io import open_for_read, open_for_write
from filltest.storage.registry import DescriptorRegistry, RegisteredFile

__all__ = [
    "DescriptorRegistry",
    "RegisteredFile",
    "UnitBuffer",
    "open_for_read",
    "open_for_write",
]
