"""Tests for configuration models and value types."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from filltest.models import (
    DEFAULT_SEED,
    FaultRecord,
    FillConfig,
    ObservabilityConfig,
)

pytestmark = [pytest.mark.unit, pytest.mark.config]


class TestFillConfig:
    """Validation rules."""

    def test_defaults(self):
        config = FillConfig()
        assert config.seed == DEFAULT_SEED
        assert config.file_size_mib == 1024
        assert config.file_limit is None
        assert config.block_size_in512 == 8
        assert config.top_off_block_size == 4096
        assert config.top_off_enabled is False

    @pytest.mark.parametrize(
        "field,value",
        [
            ("seed", -1),
            ("seed", 2**32),
            ("file_size_mib", 0),
            ("file_limit", 0),
            ("block_size_in512", 0),
            ("block_size_in512", 2049),
        ],
    )
    def test_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            FillConfig(**{field: value})

    def test_top_off_enabled(self):
        config = FillConfig(top_off=True, block_size_in512=2)
        assert config.top_off_enabled
        assert config.top_off_block_size == 1024

    def test_file_limit_disables_top_off(self):
        config = FillConfig(file_limit=3, top_off=True)
        assert config.top_off is False
        assert config.top_off_enabled is False

    def test_verify_only_drops_immediate_unlink(self):
        assert FillConfig(verify_only=True, unlink_immediate=True).unlink_immediate is False
        assert FillConfig(unlink_immediate=True).unlink_immediate is True


class TestObservabilityConfig:
    def test_log_level_parsed_from_string(self):
        assert ObservabilityConfig(log_level="DEBUG").log_level.value == "DEBUG"

    def test_unknown_level(self):
        with pytest.raises(ValidationError):
            ObservabilityConfig(log_level="LOUD")


class TestFaultRecord:
    def test_position(self):
        fault = FaultRecord("random-00000000", 0, 2, 24, 1024, 5, 6)
        assert fault.position == 2 * 1024 + 24

    def test_frozen(self):
        fault = FaultRecord("random-00000000", 0, 0, 0, 8, 1, 2)
        with pytest.raises(AttributeError):
            fault.offset = 8
