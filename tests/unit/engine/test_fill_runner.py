"""Tests for FillTestRunner and RunReport."""

from __future__ import annotations

import sys

import pytest

from filltest.engine.runner import FillTestRunner
from filltest.models import FillConfig
from filltest.utils.events import EventType

pytestmark = [pytest.mark.unit, pytest.mark.engine]

MIB = 1024 * 1024


def data_files(directory):
    return sorted(p.name for p in directory.iterdir() if p.name.startswith("random-"))


class TestRoundTrip:
    """Write then verify."""

    def test_clean_run(self, tmp_path, event_bus, recorder):
        config = FillConfig(file_size_mib=1, file_limit=2)
        report = FillTestRunner(config, tmp_path, event_bus).run()

        assert report.passed
        assert report.fault_count == 0
        assert report.files_written == 2
        assert report.files_read == 2
        assert report.metrics.bytes_written == 2 * MIB
        assert report.metrics.bytes_read == 2 * MIB
        assert data_files(tmp_path) == ["random-00000000", "random-00000001"]
        assert report.seconds > 0
        types = [e.event_type for e in recorder.events]
        assert types[0] == EventType.RUN_STARTED.value
        assert types[-1] == EventType.RUN_COMPLETED.value

    def test_stale_files_are_removed_first(self, tmp_path, event_bus, recorder):
        (tmp_path / "random-00000000").write_bytes(b"stale")
        (tmp_path / "random-00000007").write_bytes(b"stale")
        (tmp_path / "keep.txt").write_bytes(b"unrelated")
        config = FillConfig(file_size_mib=1, file_limit=1)
        report = FillTestRunner(config, tmp_path, event_bus).run()

        assert report.removed_before == 2
        assert report.passed
        assert data_files(tmp_path) == ["random-00000000"]
        assert (tmp_path / "keep.txt").exists()
        removed = recorder.of_type(EventType.FILES_REMOVED.value)
        assert removed[0].data == {"count": 2, "reason": "stale"}

    def test_verify_only_leaves_files_alone(self, tmp_path, write_expected):
        write_expected(tmp_path, 5, 0, MIB)
        config = FillConfig(seed=5, file_size_mib=1, verify_only=True)
        report = FillTestRunner(config, tmp_path).run()

        assert report.files_written == 0
        assert report.files_read == 1
        assert report.passed
        assert data_files(tmp_path) == ["random-00000000"]


class TestUnlinkAfter:
    """Delete after a test without faults."""

    def test_removed_after_success(self, tmp_path):
        config = FillConfig(file_size_mib=1, file_limit=2, unlink_after=True)
        report = FillTestRunner(config, tmp_path).run()

        assert report.passed
        assert report.removed_after == 2
        assert data_files(tmp_path) == []

    def test_kept_after_fault(self, tmp_path, write_expected, corrupt):
        for index in range(2):
            write_expected(tmp_path, 5, index, MIB)
        corrupt(tmp_path / "random-00000001", 100)
        config = FillConfig(
            seed=5, file_size_mib=1, verify_only=True, unlink_after=True
        )
        report = FillTestRunner(config, tmp_path).run()

        assert not report.passed
        assert report.fault_count == 1
        assert report.removed_after == 0
        assert data_files(tmp_path) == ["random-00000000", "random-00000001"]


@pytest.mark.skipif(sys.platform == "win32", reason="open files cannot be unlinked")
class TestImmediateUnlink:
    """No directory entries survive and verification still passes."""

    def test_no_entries_and_no_faults(self, tmp_path):
        config = FillConfig(file_size_mib=1, file_limit=3, unlink_immediate=True)
        report = FillTestRunner(config, tmp_path).run()

        assert data_files(tmp_path) == []
        assert report.passed
        assert report.files_written == 3
        assert report.files_read == 3

    def test_verify_only_ignores_immediate_unlink(self):
        config = FillConfig(verify_only=True, unlink_immediate=True)
        assert config.unlink_immediate is False


class TestRunReport:
    def test_to_dict(self, tmp_path):
        config = FillConfig(seed=3, file_size_mib=1, file_limit=1)
        data = FillTestRunner(config, tmp_path).run().to_dict()

        assert data["seed"] == 3
        assert data["files_written"] == 1
        assert data["fault_count"] == 0
        assert data["metrics"]["gross"]["write"]["bytes"] == MIB


class TestMissingDirectory:
    def test_run_ends_without_raising(self, tmp_path, event_bus, recorder):
        config = FillConfig(file_size_mib=1, file_limit=1)
        report = FillTestRunner(config, tmp_path / "gone", event_bus).run()

        assert report.files_written == 0
        assert report.write_phases[0].stop_reason.value == "open_failed"
        assert report.verify_passes[0].stop_reason.value == "missing_file"
        assert report.passed
        assert len(recorder.of_type(EventType.RUN_COMPLETED.value)) == 1
