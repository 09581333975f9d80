"""
Diagnostic Rule Tables

Every threshold the diagnostic engine applies is declared here as data.

A ``Rule`` pulls zero or more ``Subject`` values out of a ParseMetrics record
(one per DoT, one per permanent buff, ...) and classifies each against an
ordered tuple of ``Band`` rows. The first band whose predicate holds wins;
a band without a severity is the "no issue" band. A rule whose input field
is absent yields no subjects, so the whole group is suppressed.

``RATING_BANDS`` maps (dps, critical count, major count) to the overall
rating, also first-match-wins from the top.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from parsesight.core.constants import (
    BAR_IMBALANCE_MAX_PERCENT,
    BUFF_UPTIME_CRITICAL,
    BUFF_UPTIME_TARGET,
    CRIT_CHANCE_MIN,
    CRIT_DAMAGE_MAX,
    CRIT_DAMAGE_MIN,
    DOT_UPTIME_CRITICAL,
    DOT_UPTIME_TARGET,
    DPS_ACCEPTABLE,
    DPS_EXCELLENT,
    DPS_GOOD,
    MISSED_LA_CRITICAL,
    MISSED_LA_MAJOR,
    PENETRATION_CAP,
    PENETRATION_CRITICAL_DEFICIT,
    PENETRATION_OVERCAP_TOLERANCE,
    TOP_ABILITY_MIN_PERCENT,
    WEAVE_TIME_CRITICAL,
    WEAVE_TIME_MAJOR,
    IssueCategory,
    Rating,
    Severity,
)
from parsesight.core.models import ParseMetrics


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_number(value: float) -> str:
    """Render integral values without a decimal point."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


@dataclass(frozen=True)
class Band:
    """One row of a decision table."""

    predicate: Callable[[float], bool]
    severity: Severity | None
    message: str = ""
    recommendation: str = ""
    target: str | None = None


@dataclass(frozen=True)
class Subject:
    """A value under test plus the fields its message templates need."""

    value: float
    current: float | str | None = None
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Rule:
    category: IssueCategory
    name: str
    subjects: Callable[[ParseMetrics], Iterator[Subject]]
    bands: tuple[Band, ...]

    def classify(self, value: float) -> Band | None:
        for band in self.bands:
            if band.predicate(value):
                return band
        return None


# =============================================================================
# Subject extractors
# =============================================================================


def _dps(m: ParseMetrics) -> Iterator[Subject]:
    if m.dps is not None:
        yield Subject(m.dps, current=round_half_up(m.dps))


def _top_ability(m: ParseMetrics) -> Iterator[Subject]:
    # First entry as given: abilities are never re-sorted here
    if m.abilities:
        top = m.abilities[0]
        yield Subject(
            top.percent_of_total,
            context={"name": top.name, "percent": f"{top.percent_of_total:.1f}"},
        )


def _dot_uptimes(m: ParseMetrics) -> Iterator[Subject]:
    for name, uptime in (m.dot_uptimes or {}).items():
        yield Subject(uptime, current=f"{uptime:.1f}%", context={"name": name})


def _bar_imbalance(m: ParseMetrics) -> Iterator[Subject]:
    bars = m.bar_balance
    if bars is None or not bars.front_bar_percent or not bars.back_bar_percent:
        return
    front, back = bars.front_bar_percent, bars.back_bar_percent
    yield Subject(
        abs(front - back),
        current=f"Front: {front:.1f}% / Back: {back:.1f}%",
    )


def _weave_time(m: ParseMetrics) -> Iterator[Subject]:
    la = m.light_attacks
    if la is not None and la.average_weave_time_seconds is not None:
        seconds = la.average_weave_time_seconds
        yield Subject(seconds, current=f"{seconds * 1000:.0f}ms")


def _missed_light_attacks(m: ParseMetrics) -> Iterator[Subject]:
    la = m.light_attacks
    if la is not None and la.miss_count is not None:
        yield Subject(la.miss_count, current=la.miss_count)


def _permanent_buffs(m: ParseMetrics) -> Iterator[Subject]:
    for buff in m.buffs or []:
        if buff.is_permanent:
            yield Subject(
                buff.uptime_percent,
                current=f"{buff.uptime_percent:.1f}%",
                context={"name": buff.name},
            )


def _penetration(m: ParseMetrics) -> Iterator[Subject]:
    if m.penetration is None:
        return
    effective = m.penetration.effective
    yield Subject(
        effective,
        current=effective,
        context={
            "cap": PENETRATION_CAP,
            "deficit": format_number(PENETRATION_CAP - effective),
            "waste": format_number(effective - PENETRATION_CAP),
        },
    )


def _crit_chance(m: ParseMetrics) -> Iterator[Subject]:
    if m.critical_chance_percent is not None:
        chance = m.critical_chance_percent
        yield Subject(chance, current=f"{chance:.1f}%")


def _crit_damage(m: ParseMetrics) -> Iterator[Subject]:
    if m.critical_damage_percent is not None:
        damage = m.critical_damage_percent
        yield Subject(damage, current=f"{damage:.1f}%")


_NO_ISSUE = None

# =============================================================================
# Rule tables
# =============================================================================

DPS_RULES: tuple[Rule, ...] = (
    Rule(
        IssueCategory.DPS,
        "dps_tier",
        _dps,
        (
            Band(lambda v: v >= DPS_EXCELLENT, _NO_ISSUE),
            Band(
                lambda v: v >= DPS_GOOD,
                Severity.MINOR,
                "DPS is good but could be improved (target {target})",
                "Focus on optimizing rotation and weaving to push above 160k",
                target="160k+",
            ),
            Band(
                lambda v: v >= DPS_ACCEPTABLE,
                Severity.MAJOR,
                "DPS is below expected range (target {target})",
                "Check rotation, weaving, and buff uptimes for improvements",
                target="140k+",
            ),
            Band(
                lambda v: True,
                Severity.CRITICAL,
                "DPS is significantly below target (target {target})",
                "Review full rotation, ensure proper weaving, maintain buff uptimes, "
                "and check gear/CP allocation",
                target="140k+",
            ),
        ),
    ),
)

ROTATION_RULES: tuple[Rule, ...] = (
    Rule(
        IssueCategory.ROTATION,
        "top_ability_share",
        _top_ability,
        (
            Band(
                lambda v: v < TOP_ABILITY_MIN_PERCENT,
                Severity.MAJOR,
                "Top ability ({name}) only accounts for {percent}% of damage",
                "Your spammable or beam should be your highest damage source. "
                "Ensure proper weaving and uptime.",
            ),
        ),
    ),
    Rule(
        IssueCategory.ROTATION,
        "dot_uptime",
        _dot_uptimes,
        (
            Band(
                lambda v: v < DOT_UPTIME_CRITICAL,
                Severity.CRITICAL,
                "{name} uptime is low",
                "Maintain {name} uptime above 90%. Consider setting up buff trackers "
                "or using DoT timers.",
                target="90%+",
            ),
            Band(
                lambda v: v < DOT_UPTIME_TARGET,
                Severity.MAJOR,
                "{name} uptime is low",
                "Maintain {name} uptime above 90%. Consider setting up buff trackers "
                "or using DoT timers.",
                target="90%+",
            ),
        ),
    ),
    Rule(
        IssueCategory.ROTATION,
        "bar_balance",
        _bar_imbalance,
        (
            Band(
                lambda v: v > BAR_IMBALANCE_MAX_PERCENT,
                Severity.MINOR,
                "Bar time is imbalanced",
                "Try to balance time between bars. Spending too long on one bar may "
                "indicate rotation issues.",
            ),
        ),
    ),
)

WEAVING_RULES: tuple[Rule, ...] = (
    Rule(
        IssueCategory.WEAVING,
        "weave_time",
        _weave_time,
        (
            Band(
                lambda v: v > WEAVE_TIME_CRITICAL,
                Severity.CRITICAL,
                "Weave time is too high",
                "Practice light attack weaving to get weave time closer to 0. "
                "This significantly impacts DPS.",
                target="<100ms",
            ),
            Band(
                lambda v: v > WEAVE_TIME_MAJOR,
                Severity.MAJOR,
                "Weave time is too high",
                "Practice light attack weaving to get weave time closer to 0. "
                "This significantly impacts DPS.",
                target="<100ms",
            ),
        ),
    ),
    Rule(
        IssueCategory.WEAVING,
        "missed_light_attacks",
        _missed_light_attacks,
        (
            Band(
                lambda v: v > MISSED_LA_CRITICAL,
                Severity.CRITICAL,
                "Too many missed light attacks",
                "Ensure you light attack between every skill. Double-barring or "
                "double-casting skills wastes damage.",
                target="0",
            ),
            Band(
                lambda v: v > MISSED_LA_MAJOR,
                Severity.MAJOR,
                "Too many missed light attacks",
                "Ensure you light attack between every skill. Double-barring or "
                "double-casting skills wastes damage.",
                target="0",
            ),
        ),
    ),
)

BUFF_RULES: tuple[Rule, ...] = (
    Rule(
        IssueCategory.BUFFS,
        "permanent_buff_uptime",
        _permanent_buffs,
        (
            Band(
                lambda v: v < BUFF_UPTIME_CRITICAL,
                Severity.CRITICAL,
                "{name} uptime is low",
                "Maintain permanent buffs above 90% uptime. Consider pre-buffing and "
                "refreshing proactively.",
                target="90%+",
            ),
            Band(
                lambda v: v < BUFF_UPTIME_TARGET,
                Severity.MAJOR,
                "{name} uptime is low",
                "Maintain permanent buffs above 90% uptime. Consider pre-buffing and "
                "refreshing proactively.",
                target="90%+",
            ),
        ),
    ),
)

PENETRATION_RULES: tuple[Rule, ...] = (
    Rule(
        IssueCategory.PENETRATION,
        "penetration_cap",
        _penetration,
        (
            Band(
                lambda v: PENETRATION_CAP - v > PENETRATION_CRITICAL_DEFICIT,
                Severity.CRITICAL,
                "Penetration is {deficit} below the {cap} cap",
                "Increase penetration by {deficit}. Add Alkosh, Crusher, or "
                "penetration CP to reach {cap} cap.",
                target=str(PENETRATION_CAP),
            ),
            Band(
                lambda v: v < PENETRATION_CAP,
                Severity.MAJOR,
                "Penetration is {deficit} below the {cap} cap",
                "Increase penetration by {deficit}. Add Alkosh, Crusher, or "
                "penetration CP to reach {cap} cap.",
                target=str(PENETRATION_CAP),
            ),
            Band(
                lambda v: v > PENETRATION_CAP + PENETRATION_OVERCAP_TOLERANCE,
                Severity.MINOR,
                "Penetration overcapped by {waste}",
                "You're wasting {waste} penetration. Consider reallocating CP or gear "
                "to other stats.",
                target=str(PENETRATION_CAP),
            ),
        ),
    ),
)

CRIT_RULES: tuple[Rule, ...] = (
    Rule(
        IssueCategory.CRIT,
        "crit_chance",
        _crit_chance,
        (
            Band(
                lambda v: v < CRIT_CHANCE_MIN,
                Severity.MAJOR,
                "Critical chance is low",
                "Aim for ~67% crit chance with Thief mundus. Adjust gear, CP, or food "
                "to increase crit rating.",
                target="67%",
            ),
        ),
    ),
    Rule(
        IssueCategory.CRIT,
        "crit_damage",
        _crit_damage,
        (
            Band(
                lambda v: v < CRIT_DAMAGE_MIN,
                Severity.MAJOR,
                "Critical damage is low",
                "Increase crit damage to 115-120% range using CP, gear traits, or buffs.",
                target="115-120%",
            ),
            Band(
                lambda v: v > CRIT_DAMAGE_MAX,
                Severity.MINOR,
                "Critical damage at diminishing returns",
                "Crit damage above 125% has diminishing returns. Consider reallocating "
                "to other stats.",
                target="115-125%",
            ),
        ),
    ),
)

# Evaluation order is also the order issues are reported in
RULES: tuple[Rule, ...] = (
    DPS_RULES + ROTATION_RULES + WEAVING_RULES + BUFF_RULES + PENETRATION_RULES + CRIT_RULES
)


# =============================================================================
# Rating bands
# =============================================================================


@dataclass(frozen=True)
class RatingBand:
    rating: Rating
    predicate: Callable[[float, int, int], bool]  # (dps, critical, major)


RATING_BANDS: tuple[RatingBand, ...] = (
    RatingBand(
        Rating.EXCELLENT,
        lambda dps, critical, major: dps >= DPS_EXCELLENT and critical == 0 and major == 0,
    ),
    RatingBand(
        Rating.GOOD,
        lambda dps, critical, major: dps >= DPS_GOOD and critical == 0 and major <= 2,
    ),
    # OR, not AND: low dps with at most one critical issue still lands here
    RatingBand(
        Rating.NEEDS_IMPROVEMENT,
        lambda dps, critical, major: dps >= DPS_ACCEPTABLE or critical <= 1,
    ),
    RatingBand(Rating.POOR, lambda dps, critical, major: True),
)
