"""
Field Extractors for Recognized CMX Text

OCR output is lossy, so fields are pulled out with independent, permissive
regex patterns anchored on a label token ("DPS", "Active Time", "Bar 1 ...
Time", ...) rather than with a grammar. Each layout is a table of
``FieldPattern`` entries; adding a field means adding a row, not touching
control flow.

A pattern that does not match leaves its field absent (``None``). It is never
defaulted to zero, and extractors never raise on unmatched text.

Layouts:
- Info: character sheet / stat summary (DPS, active time, bar balance,
  penetration, crit chance, light attack block)
- Parse: per-ability damage breakdown (DPS, active time, total damage,
  ability rows)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from parsesight.core.constants import ABILITY_DAMAGE_NOISE_FLOOR, ScreenType
from parsesight.core.models import (
    AbilityMetric,
    BarBalance,
    LightAttackStats,
    ParseMetrics,
    Penetration,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldPattern:
    """One extractor row: where to store it, what to match, how to convert."""

    target: str  # Dotted attribute path on ParseMetrics
    regex: re.Pattern
    convert: Callable[[re.Match], Any]


# Factories for nested blocks created on first assignment
_NESTED_FACTORIES: dict[str, Callable[[], Any]] = {
    "bar_balance": BarBalance,
    "light_attacks": LightAttackStats,
}


def _assign(metrics: ParseMetrics, target: str, value: Any) -> None:
    """Set ``value`` at a dotted path, creating nested blocks as needed."""
    head, _, rest = target.partition(".")
    if not rest:
        setattr(metrics, head, value)
        return

    block = getattr(metrics, head)
    if block is None:
        block = _NESTED_FACTORIES[head]()
        setattr(metrics, head, block)
    setattr(block, rest, value)


def clean_text(text: str) -> str:
    """Drop table separators that OCR reads as pipes."""
    return text.replace("|", " ")


# =============================================================================
# Converters
# =============================================================================


def _int_group(match: re.Match) -> int:
    return int(match.group(1))


def _float_group(match: re.Match) -> float:
    return float(match.group(1))


def _active_time(match: re.Match) -> float:
    """``m:ss[.fraction]`` to seconds."""
    minutes, seconds, fraction = match.groups()
    total = int(minutes) * 60 + int(seconds)
    if fraction:
        total += float(f"0.{fraction}")
    return total


def _penetration(match: re.Match) -> Penetration:
    # A single recognized value; overcap weighting is not visible on screen
    value = int(match.group(1))
    return Penetration(effective=value, average=value)


def _light_attacks(match: re.Match) -> LightAttackStats:
    # Columns: count, weave-related count (unused), misses, weave time in ms
    count, _weave_count, misses, time_ms = match.groups()
    return LightAttackStats(
        count=int(count),
        miss_count=int(misses),
        average_weave_time_seconds=float(time_ms) / 1000,
    )


# =============================================================================
# Pattern Tables
# =============================================================================

DPS_PATTERN = FieldPattern("dps", re.compile(r"DPS\s+(\d+)", re.IGNORECASE), _int_group)

ACTIVE_TIME_PATTERN = FieldPattern(
    "active_time_seconds",
    re.compile(r"Active\s+Time[:\s]+(\d+):(\d+)(?:\.(\d+))?", re.IGNORECASE),
    _active_time,
)

INFO_PATTERNS: tuple[FieldPattern, ...] = (
    DPS_PATTERN,
    ACTIVE_TIME_PATTERN,
    FieldPattern(
        "bar_balance.front_bar_percent",
        re.compile(r"Bar\s*1\s+.*?Time[:\s]+(\d+\.?\d*)%", re.IGNORECASE),
        _float_group,
    ),
    FieldPattern(
        "bar_balance.back_bar_percent",
        re.compile(r"Bar\s*2\s+.*?Time[:\s]+(\d+\.?\d*)%", re.IGNORECASE),
        _float_group,
    ),
    FieldPattern(
        "penetration",
        re.compile(r"Penetration[:\s]+(\d+)", re.IGNORECASE),
        _penetration,
    ),
    FieldPattern(
        "critical_chance_percent",
        re.compile(r"Crit(?:ical)?[:\s]+(\d+\.?\d*)%", re.IGNORECASE),
        _float_group,
    ),
    FieldPattern(
        "light_attacks",
        re.compile(r"Light\s+Attack.*?(\d+)\s+(\d+)\s+(\d+)\s+(\d+\.?\d*)", re.IGNORECASE),
        _light_attacks,
    ),
)

PARSE_PATTERNS: tuple[FieldPattern, ...] = (
    DPS_PATTERN,
    ACTIVE_TIME_PATTERN,
    FieldPattern("total_damage", re.compile(r"Damage\s+(\d+)", re.IGNORECASE), _int_group),
)

# "Bd (54432) Biting Jabs 15.4% 25711 3239315"
#     (id)    name        pct   dps   damage
ABILITY_ROW = re.compile(r"\((\d+)\)\s+([A-Za-z][A-Za-z\s'()]+?)\s+(\d+\.?\d*)%\s+\d+\s+(\d+)")


# =============================================================================
# Extraction
# =============================================================================


def apply_patterns(text: str, patterns: tuple[FieldPattern, ...]) -> ParseMetrics:
    """Run every pattern against ``text`` and collect the matches."""
    metrics = ParseMetrics()
    for pattern in patterns:
        match = pattern.regex.search(text)
        if match is None:
            continue
        try:
            value = pattern.convert(match)
        except ValueError as e:
            logger.debug(f"Discarding unconvertible {pattern.target} match {match.group(0)!r}: {e}")
            continue
        _assign(metrics, pattern.target, value)
        logger.debug(f"Extracted {pattern.target} from {match.group(0)!r}")
    return metrics


def extract_ability_rows(text: str) -> list[AbilityMetric]:
    """Scan the damage table line by line, rejecting OCR noise rows."""
    abilities = []
    for line in text.split("\n"):
        match = ABILITY_ROW.search(line)
        if not match:
            continue

        name = match.group(2).strip()
        percent = float(match.group(3))
        damage = int(match.group(4))

        if not (0 < percent <= 100) or damage <= ABILITY_DAMAGE_NOISE_FLOOR:
            logger.debug(f"Rejected ability row {name!r} ({percent}%, {damage} damage)")
            continue

        abilities.append(AbilityMetric(name=name, total_damage=damage, percent_of_total=percent))
    return abilities


def extract_info_fields(text: str) -> ParseMetrics:
    """Extract stat-summary fields from Info-layout text."""
    return apply_patterns(clean_text(text), INFO_PATTERNS)


def extract_parse_fields(text: str) -> ParseMetrics:
    """Extract DPS, timing, totals and ability rows from Parse-layout text."""
    cleaned = clean_text(text)
    metrics = apply_patterns(cleaned, PARSE_PATTERNS)

    abilities = extract_ability_rows(cleaned)
    if abilities:
        metrics.abilities = abilities
    return metrics


EXTRACTORS: dict[ScreenType, Callable[[str], ParseMetrics]] = {
    ScreenType.INFO: extract_info_fields,
    ScreenType.PARSE: extract_parse_fields,
}


def extract_fields(text: str, screen_type: ScreenType | str = ScreenType.AUTO) -> ParseMetrics:
    """
    Run the extractor(s) for a layout.

    ``auto`` runs Info then Parse and merges last-write-wins, so fields the
    Parse layout recognizes override the Info ones.
    """
    screen_type = ScreenType(screen_type)
    if screen_type is ScreenType.AUTO:
        layouts = [ScreenType.INFO, ScreenType.PARSE]
    else:
        layouts = [screen_type]

    metrics = ParseMetrics()
    for layout in layouts:
        metrics = metrics.merge(EXTRACTORS[layout](text))
    return metrics
