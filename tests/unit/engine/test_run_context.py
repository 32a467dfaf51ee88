"""Tests for the run context."""

from __future__ import annotations

import pytest

from filltest.models import FaultRecord, FillConfig
from filltest.utils.events import EventType

pytestmark = [pytest.mark.unit, pytest.mark.engine]


class TestRecordFault:
    def test_keeps_record_and_emits(self, make_context, recorder):
        context = make_context(FillConfig())
        fault = FaultRecord(
            file_name="random-00000002",
            slot_index=2,
            block_index=3,
            offset=16,
            block_size=4096,
            expected=1,
            actual=2,
        )
        context.record_fault(fault)

        assert context.faults == [fault]
        assert context.fault_count == 1
        events = recorder.of_type(EventType.FAULT_DETECTED.value)
        assert events[0].data["position"] == 3 * 4096 + 16
        assert events[0].source == "engine"
