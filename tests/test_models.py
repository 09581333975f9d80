"""Tests for the metrics record: presence semantics, merge, dict conversion."""

from __future__ import annotations

import pytest

from parsesight.core.constants import ScreenType
from parsesight.core.errors import IncompleteMetricsError
from parsesight.core.models import (
    AbilityMetric,
    BarBalance,
    LightAttackStats,
    OCRResult,
    ParseMetrics,
    Penetration,
    ScreenshotInput,
)


class TestParseMetricsMerge:
    """Test last-write-wins merging of partial records."""

    def test_present_fields_win(self):
        """Fields present in the later record override the earlier ones."""
        info = ParseMetrics(dps=120000, penetration=Penetration(18000, 18000))
        parse = ParseMetrics(dps=125000, total_damage=1_000_000)

        merged = info.merge(parse)

        assert merged.dps == 125000
        assert merged.total_damage == 1_000_000
        assert merged.penetration == Penetration(18000, 18000)

    def test_absent_fields_do_not_clobber(self):
        """A None field in the later record leaves the earlier value alone."""
        merged = ParseMetrics(dps=100000).merge(ParseMetrics(active_time_seconds=60.0))
        assert merged.dps == 100000
        assert merged.active_time_seconds == 60.0

    def test_zero_is_present(self):
        """A recognized zero overrides an earlier value."""
        merged = ParseMetrics(dps=100000).merge(ParseMetrics(dps=0))
        assert merged.dps == 0

    def test_merge_is_shallow(self):
        """A nested block replaces the earlier block wholesale."""
        first = ParseMetrics(light_attacks=LightAttackStats(count=100, miss_count=2))
        second = ParseMetrics(light_attacks=LightAttackStats(count=90))

        merged = first.merge(second)

        assert merged.light_attacks.count == 90
        assert merged.light_attacks.miss_count is None

    def test_merge_returns_new_record(self):
        """Neither input is modified by merging."""
        first = ParseMetrics(dps=1)
        second = ParseMetrics(dps=2)
        merged = first.merge(second)
        assert merged is not first
        assert first.dps == 1
        assert second.dps == 2

    def test_present_fields(self):
        metrics = ParseMetrics(dps=0, abilities=[])
        assert metrics.present_fields() == ["dps", "abilities"]


class TestParseMetricsDicts:
    """Test conversion to and from plain dicts."""

    def test_to_dict_drops_absent_fields(self):
        metrics = ParseMetrics(dps=150000, bar_balance=BarBalance(front_bar_percent=60.0))
        assert metrics.to_dict() == {
            "dps": 150000,
            "bar_balance": {"front_bar_percent": 60.0},
        }

    def test_from_dict_builds_nested_records(self):
        """Nested blocks are rebuilt as their dataclasses."""
        metrics = ParseMetrics.from_dict(
            {
                "dps": 150000,
                "active_time_seconds": 100,
                "abilities": [{"name": "Biting Jabs", "total_damage": 3e6, "percent_of_total": 22.1}],
                "buffs": [{"name": "Major Brutality", "uptime_percent": 95, "is_permanent": True}],
                "light_attacks": {"count": 120, "miss_count": 3},
                "penetration": {"effective": 18200, "average": 17900},
                "dot_uptimes": {"Poison Injection": 88},
            }
        )

        assert metrics.abilities == [AbilityMetric("Biting Jabs", 3e6, 22.1)]
        assert metrics.buffs[0].is_permanent is True
        assert metrics.light_attacks.count == 120
        assert metrics.penetration.average == 17900
        assert metrics.dot_uptimes == {"Poison Injection": 88.0}

    def test_from_dict_rejects_unknown_fields(self):
        with pytest.raises(TypeError, match="Unknown metrics fields: speed"):
            ParseMetrics.from_dict({"dps": 1, "speed": 2})

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            ParseMetrics.from_dict([1, 2, 3])

    def test_from_dict_rejects_non_mapping_dot_uptimes(self):
        with pytest.raises(TypeError, match="dot_uptimes must be a mapping, got list"):
            ParseMetrics.from_dict({"dps": 1, "dot_uptimes": [88.0]})


class TestScreenshotInput:
    """Test the accepted shapes of a batch item."""

    def test_coerce_tuple(self):
        item = ScreenshotInput.coerce(("info.png", "info"))
        assert item.path == "info.png"
        assert item.screen_type is ScreenType.INFO

    def test_coerce_dict_defaults_to_auto(self):
        item = ScreenshotInput.coerce({"path": "a.png"})
        assert item.screen_type is ScreenType.AUTO

    def test_coerce_passthrough(self):
        original = ScreenshotInput("a.png", ScreenType.PARSE)
        assert ScreenshotInput.coerce(original) is original

    def test_coerce_rejects_garbage(self):
        with pytest.raises(TypeError):
            ScreenshotInput.coerce(42)

    def test_coerce_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            ScreenshotInput.coerce(("a.png", "stats"))


class TestResults:
    def test_ocr_result_failure_dict(self):
        assert OCRResult(success=False, error="boom").to_dict() == {
            "success": False,
            "error": "boom",
        }

    def test_incomplete_metrics_error(self):
        """The error names every missing field and is also a ValueError."""
        error = IncompleteMetricsError(["dps", "active_time_seconds"])
        assert error.missing == ["dps", "active_time_seconds"]
        assert "dps, active_time_seconds" in str(error)
        assert isinstance(error, ValueError)
