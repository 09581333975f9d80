"""Tests for the extracted-metrics completeness check."""

from __future__ import annotations

from parsesight.core.models import AbilityMetric, LightAttackStats, ParseMetrics
from parsesight.ocr.extractors import extract_info_fields
from parsesight.ocr.validation import validate_ocr_data


def _complete(**overrides) -> ParseMetrics:
    values = dict(
        dps=150000,
        active_time_seconds=100.0,
        light_attacks=LightAttackStats(count=120),
        abilities=[AbilityMetric("Biting Jabs", 3_000_000, 20.0)],
    )
    values.update(overrides)
    return ParseMetrics(**values)


class TestValidateOcrData:
    """Test presence checks and recovery suggestions."""

    def test_complete_record(self):
        result = validate_ocr_data(_complete())
        assert result.is_complete
        assert result.missing_fields == []
        assert result.suggestions == []

    def test_empty_record_reports_everything_in_order(self):
        result = validate_ocr_data(ParseMetrics())
        assert not result.is_complete
        assert result.missing_fields == ["dps", "activeTime", "lightAttacks.count", "abilities"]
        assert len(result.suggestions) == 4

    def test_missing_dps(self):
        result = validate_ocr_data(_complete(dps=None))
        assert result.missing_fields == ["dps"]
        assert "DPS value could not be extracted" in result.suggestions[0]

    def test_zero_counts_as_present(self):
        """A field recognized as zero is not missing."""
        result = validate_ocr_data(
            _complete(dps=0, active_time_seconds=0, light_attacks=LightAttackStats(count=0))
        )
        assert result.is_complete

    def test_light_attack_block_without_count(self):
        result = validate_ocr_data(_complete(light_attacks=LightAttackStats(miss_count=4)))
        assert result.missing_fields == ["lightAttacks.count"]

    def test_empty_ability_list_is_missing(self):
        result = validate_ocr_data(_complete(abilities=[]))
        assert result.missing_fields == ["abilities"]

    def test_values_are_not_range_checked(self):
        assert validate_ocr_data(_complete(dps=-5)).is_complete

    def test_idempotent(self):
        """Validating twice gives the same answer and does not touch the record."""
        metrics = _complete(dps=None)
        before = metrics.to_dict()
        assert validate_ocr_data(metrics) == validate_ocr_data(metrics)
        assert metrics.to_dict() == before

    def test_missing_dps_propagates_to_validation(self):
        """An info panel without a DPS line is reported as missing dps, not zero."""
        metrics = extract_info_fields("Active Time: 1:40\nPenetration: 18000")
        assert metrics.dps is None

        result = validate_ocr_data(metrics)
        assert not result.is_complete
        assert "dps" in result.missing_fields
        assert "activeTime" not in result.missing_fields
