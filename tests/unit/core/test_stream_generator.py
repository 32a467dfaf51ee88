"""Tests for the payload stream generator."""

from __future__ import annotations

import pytest

from filltest.core.generator import (
    INCREMENT,
    MASK64,
    MULTIPLIER,
    StreamGenerator,
    lcg_next,
)
from filltest.storage.buffers import UnitBuffer

pytestmark = [pytest.mark.unit, pytest.mark.core]


class TestLcgNext:
    """Single generator steps."""

    def test_zero_state_yields_increment(self):
        assert lcg_next(0) == INCREMENT

    def test_one_step(self):
        assert lcg_next(1) == (MULTIPLIER + INCREMENT) & MASK64

    def test_wraps_at_64_bits(self):
        value = lcg_next(MASK64)
        assert 0 <= value <= MASK64
        assert value == (MULTIPLIER * MASK64 + INCREMENT) % (1 << 64)


class TestStreamGenerator:
    """Stateful stream behaviour."""

    def test_first_output_is_step_from_seed(self):
        gen = StreamGenerator(1434038593)
        assert gen.next() == lcg_next(1434038593)

    def test_state_tracks_last_output(self):
        gen = StreamGenerator(7)
        value = gen.next()
        assert gen.state == value

    def test_same_seed_same_sequence(self):
        assert StreamGenerator(42).take(100) == StreamGenerator(42).take(100)

    def test_different_seeds_differ(self):
        assert StreamGenerator(42).take(4) != StreamGenerator(43).take(4)

    def test_iterator_protocol(self):
        gen = StreamGenerator(5)
        first = [next(gen) for _ in range(3)]
        assert first == StreamGenerator(5).take(3)

    def test_take_continues_stream(self):
        gen = StreamGenerator(9)
        combined = gen.take(3) + gen.take(2)
        assert combined == StreamGenerator(9).take(5)

    def test_fill_matches_take(self):
        buffer = UnitBuffer(64)
        gen = StreamGenerator(11)
        gen.fill(buffer.units())
        assert list(buffer.units()) == StreamGenerator(11).take(8)
        assert gen.state == buffer.units()[-1]

    def test_fill_across_blocks_is_one_stream(self):
        """Splitting the output over blocks does not change it."""
        small = UnitBuffer(16)
        gen = StreamGenerator(3)
        values = []
        for _ in range(4):
            gen.fill(small.units())
            values.extend(small.units())
        assert values == StreamGenerator(3).take(8)

    def test_seed_is_reduced_to_64_bits(self):
        assert StreamGenerator((1 << 64) + 5).take(2) == StreamGenerator(5).take(2)
