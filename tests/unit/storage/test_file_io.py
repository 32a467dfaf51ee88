"""Tests for the unbuffered file openers."""

from __future__ import annotations

import os
import stat
import sys

import pytest

from filltest.storage.file_io import open_for_read, open_for_write

pytestmark = [pytest.mark.unit, pytest.mark.storage]


class TestOpeners:
    """Write and read handles."""

    def test_write_creates_and_truncates(self, tmp_path):
        path = tmp_path / "random-00000000"
        path.write_bytes(b"old contents")
        with open_for_write(path) as handle:
            handle.write(b"new")
        assert path.read_bytes() == b"new"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_write_mode_is_owner_only(self, tmp_path):
        path = tmp_path / "random-00000000"
        old_umask = os.umask(0)
        try:
            open_for_write(path).close()
        finally:
            os.umask(old_umask)
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_write_handle_is_readable(self, tmp_path):
        with open_for_write(tmp_path / "f") as handle:
            handle.write(b"abc")
            handle.seek(0)
            assert handle.read() == b"abc"

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            open_for_read(tmp_path / "missing")

    def test_read_is_unbuffered(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"x" * 10)
        with open_for_read(path) as handle:
            assert handle.readinto(bytearray(4)) == 4
            assert handle.tell() == 4
