"""Tests for UnitBuffer."""

from __future__ import annotations

import io

import pytest

from filltest.core.generator import StreamGenerator
from filltest.storage.buffers import UnitBuffer

pytestmark = [pytest.mark.unit, pytest.mark.storage]


class TestConstruction:
    """Size validation."""

    @pytest.mark.parametrize("size", [0, -8, 7, 12])
    def test_rejects_bad_sizes(self, size):
        with pytest.raises(ValueError, match="multiple of 8"):
            UnitBuffer(size)

    def test_unit_count(self):
        assert UnitBuffer(4096).unit_count == 512


class TestViews:
    """Bounds-checked views."""

    def test_view_default_is_whole_buffer(self):
        assert len(UnitBuffer(64).view()) == 64

    def test_view_prefix(self):
        assert len(UnitBuffer(64).view(16)) == 16

    def test_view_out_of_range(self):
        with pytest.raises(IndexError):
            UnitBuffer(64).view(72)

    def test_units_prefix(self):
        assert len(UnitBuffer(64).units(3)) == 3

    def test_units_out_of_range(self):
        with pytest.raises(IndexError):
            UnitBuffer(64).units(9)


class TestFill:
    """Filling from a generator."""

    def test_fill_whole_buffer(self):
        buffer = UnitBuffer(32)
        view = buffer.fill(StreamGenerator(1))
        assert len(view) == 32
        assert list(buffer.units()) == StreamGenerator(1).take(4)
        assert buffer.stats.fills == 1

    def test_fill_prefix_leaves_rest(self):
        buffer = UnitBuffer(32)
        gen = StreamGenerator(1)
        buffer.fill(gen, 16)
        assert list(buffer.units(2)) == StreamGenerator(1).take(2)
        assert list(buffer.units())[2:] == [0, 0]
        assert gen.state == buffer.units()[1]

    def test_fill_rejects_partial_unit(self):
        with pytest.raises(ValueError):
            UnitBuffer(32).fill(StreamGenerator(1), 12)


class TestReadFrom:
    """Single read calls."""

    def test_reads_one_buffer(self):
        buffer = UnitBuffer(8)
        handle = io.BytesIO(bytes(range(12)))
        assert buffer.read_from(handle) == 8
        assert bytes(buffer.view()) == bytes(range(8))
        assert buffer.read_from(handle) == 4

    def test_end_of_file(self):
        assert UnitBuffer(8).read_from(io.BytesIO(b"")) == 0


class TestMismatches:
    """Unit-wise comparison."""

    def test_equal_buffers(self):
        actual, expected = UnitBuffer(64), UnitBuffer(64)
        actual.fill(StreamGenerator(2))
        expected.fill(StreamGenerator(2))
        assert list(actual.mismatches(expected, 64)) == []
        assert actual.stats.mismatched_blocks == 0

    def test_reports_offset_and_values(self):
        actual, expected = UnitBuffer(64), UnitBuffer(64)
        actual.fill(StreamGenerator(2))
        expected.fill(StreamGenerator(2))
        good = actual.units()[3]
        actual.units()[3] = good ^ 1
        assert list(actual.mismatches(expected, 64)) == [(24, good, good ^ 1)]
        assert actual.stats.mismatched_blocks == 1

    def test_ignores_units_past_length(self):
        actual, expected = UnitBuffer(64), UnitBuffer(64)
        actual.units()[7] = 1
        assert list(actual.mismatches(expected, 56)) == []
        assert len(list(actual.mismatches(expected, 64))) == 1

    def test_expected_shorter_than_length(self):
        with pytest.raises(IndexError):
            list(UnitBuffer(64).mismatches(UnitBuffer(32), 64))
