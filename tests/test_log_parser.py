"""Tests for cast log parsing, gap detection and weave classification."""

from __future__ import annotations

import logging

import pytest

from parsesight.core.models import LogEvent
from parsesight.logs.parser import is_light_attack, parse_combat_log, parse_line
from parsesight.logs.weaving import validate_weaving

SAMPLE_LOG = """\
Rotation log - Target Dummy

[0.0] Biting Jabs
[1.0] Light Attack
[2.5] Merciless Resolve
[2.6] LA
"""


def _events(*kinds: str) -> list[LogEvent]:
    """Build events one second apart; "LA" marks a light attack."""
    return [
        LogEvent(timestamp_seconds=float(i), ability_name=kind, is_light_attack=kind == "LA")
        for i, kind in enumerate(kinds)
    ]


class TestParseLine:
    """Test the two accepted timestamp formats."""

    def test_seconds_format(self):
        event = parse_line("[83.45] Crystal Fragments")
        assert event.timestamp_seconds == pytest.approx(83.45)
        assert event.ability_name == "Crystal Fragments"
        assert not event.is_light_attack

    def test_clock_format(self):
        event = parse_line("[0:01:23.45] Crystal Fragments")
        assert event.timestamp_seconds == pytest.approx(83.45)

    def test_clock_format_hours(self):
        assert parse_line("[1:00:00] Heavy Attack").timestamp_seconds == 3600

    def test_unmatched_line(self):
        assert parse_line("no timestamp here") is None


class TestLightAttackDetection:
    @pytest.mark.parametrize("name", ["Light Attack", "light attack (restoration staff)", "LA", "Heavy la cancel"])
    def test_light_attacks(self, name):
        assert is_light_attack(name)

    @pytest.mark.parametrize("name", ["Flame Lash", "Blade Cloak", "Lava Whip", "Biting Jabs"])
    def test_skills(self, name):
        """Names merely containing the letters "la" are skills."""
        assert not is_light_attack(name)


class TestParseCombatLog:
    """Test event ordering and gap detection."""

    def test_skips_headers_and_blank_lines(self):
        result = parse_combat_log(SAMPLE_LOG)
        assert [e.ability_name for e in result.events] == [
            "Biting Jabs",
            "Light Attack",
            "Merciless Resolve",
            "LA",
        ]

    def test_single_gap(self):
        """A delay equal to the threshold is not a gap; only 1.0 -> 2.5 is."""
        result = parse_combat_log(SAMPLE_LOG)

        assert len(result.gaps) == 1
        gap = result.gaps[0]
        assert gap.start_seconds == 1.0
        assert gap.end_seconds == 2.5
        assert gap.duration_seconds == pytest.approx(1.5)

        assert result.analysis.total_gaps == 1
        assert result.analysis.largest_gap == pytest.approx(1.5)
        assert result.analysis.average_gap_size == pytest.approx(1.5)

    def test_gap_from_zero_timestamp(self):
        """The first event counts even when it is at t=0."""
        result = parse_combat_log("[0] Opener\n[3] Follow-up")
        assert len(result.gaps) == 1
        assert result.gaps[0].start_seconds == 0

    def test_custom_threshold(self):
        result = parse_combat_log(SAMPLE_LOG, gap_threshold=2.0)
        assert result.gaps == []

    def test_gap_statistics(self):
        result = parse_combat_log("[0] A\n[2] B\n[6] C")
        assert result.analysis.total_gaps == 2
        assert result.analysis.largest_gap == pytest.approx(4.0)
        assert result.analysis.average_gap_size == pytest.approx(3.0)

    def test_out_of_order_timestamps(self, caplog):
        """A backwards timestamp is kept, counted, logged and never a gap."""
        with caplog.at_level(logging.WARNING, logger="parsesight.logs.parser"):
            result = parse_combat_log("[5.0] A\n[3.0] B\n[10.0] C")

        assert len(result.events) == 3
        assert result.analysis.out_of_order_events == 1
        assert [(g.start_seconds, g.end_seconds) for g in result.gaps] == [(3.0, 10.0)]
        assert "earlier than previous" in caplog.text

    def test_empty_log(self):
        result = parse_combat_log("")
        assert result.events == []
        assert result.gaps == []
        assert result.analysis.total_gaps == 0
        assert result.analysis.largest_gap == 0.0


class TestValidateWeaving:
    """Test pairwise weave classification."""

    def test_mixed_sequence(self):
        """(skill, LA) sets up, (LA, LA) doubles, (LA, skill) is a good weave."""
        result = validate_weaving(_events("Skill", "LA", "LA", "Skill"))
        assert result.missed_weaves == 0
        assert result.double_weaves == 1
        assert result.good_weaves == 1
        assert result.weave_efficiency == pytest.approx(100 / 3)

    def test_perfect_weaving(self):
        result = validate_weaving(_events("LA", "Skill", "LA", "Skill"))
        assert result.good_weaves == 2
        assert result.missed_weaves == 0
        assert result.weave_efficiency == pytest.approx(200 / 3)

    def test_all_skills(self):
        result = validate_weaving(_events("Skill", "Skill", "Skill"))
        assert result.missed_weaves == 2
        assert result.weave_efficiency == 0.0

    @pytest.mark.parametrize("count", [0, 1])
    def test_too_few_events(self, count):
        result = validate_weaving(_events(*["LA"] * count))
        assert result.missed_weaves == result.double_weaves == result.good_weaves == 0
        assert result.weave_efficiency == 0.0

    def test_from_parsed_log(self):
        result = validate_weaving(parse_combat_log(SAMPLE_LOG).events)
        # Jabs->LA setup, LA->Resolve good, Resolve->LA setup
        assert result.good_weaves == 1
        assert result.missed_weaves == 0
