"""Tests for the retained-handle registry."""

from __future__ import annotations

import io

import pytest

from filltest.core.slots import FileSlot
from filltest.models import Phase
from filltest.storage.registry import DescriptorRegistry
from filltest.utils.exceptions import RegistryExhaustedError, ResourceError

pytestmark = [pytest.mark.unit, pytest.mark.storage]


class TestDescriptorRegistry:
    """Append, lookup and release."""

    def test_append_returns_positions(self):
        registry = DescriptorRegistry()
        assert registry.append(FileSlot(0), Phase.LARGE, io.BytesIO()) == 0
        assert registry.append(FileSlot(1), Phase.TOP_OFF, io.BytesIO()) == 1
        assert len(registry) == 2

    def test_get_keeps_slot_and_phase(self):
        registry = DescriptorRegistry()
        registry.append(FileSlot(4), Phase.TOP_OFF, io.BytesIO())
        entry = registry.get(0)
        assert entry.slot == FileSlot(4)
        assert entry.phase is Phase.TOP_OFF
        assert entry.name == "random-00000004"

    def test_iteration_in_registration_order(self):
        registry = DescriptorRegistry()
        for index in range(3):
            registry.append(FileSlot(index), Phase.LARGE, io.BytesIO())
        assert [entry.slot.index for entry in registry] == [0, 1, 2]

    @pytest.mark.parametrize("position", [-1, 0, 5])
    def test_exhausted(self, position):
        with pytest.raises(RegistryExhaustedError):
            DescriptorRegistry().get(position)

    def test_exhausted_is_resource_error(self):
        assert issubclass(RegistryExhaustedError, ResourceError)

    def test_close_all(self):
        handles = [io.BytesIO(), io.BytesIO()]
        registry = DescriptorRegistry()
        for index, handle in enumerate(handles):
            registry.append(FileSlot(index), Phase.LARGE, handle)
        assert registry.close_all() == 2
        assert len(registry) == 0
        assert all(handle.closed for handle in handles)

    def test_context_manager_closes(self):
        handle = io.BytesIO()
        with DescriptorRegistry() as registry:
            registry.append(FileSlot(0), Phase.LARGE, handle)
        assert handle.closed
