"""
Combat Log Parser - timestamped cast lines to ordered events and gaps.

Accepted line formats (anything else is skipped, logs routinely carry
headers and blank lines):

    [0:01:23.45] Ability Name      H:MM:SS(.frac)
    [83.45] Ability Name           seconds(.frac)

Usage:
    from parsesight.logs import parse_combat_log

    result = parse_combat_log(Path("rotation.log").read_text())
    print(result.analysis.total_gaps, result.analysis.largest_gap)
"""

from __future__ import annotations

import logging
import re

from parsesight.core.constants import GAP_THRESHOLD_SECONDS
from parsesight.core.models import Gap, GapAnalysis, LogEvent, LogParseResult

logger = logging.getLogger(__name__)

CLOCK_LINE = re.compile(r"\[(\d+):(\d+):(\d+(?:\.\d+)?)\]\s+(.+)")
SECONDS_LINE = re.compile(r"\[(\d+(?:\.\d+)?)\]\s+(.+)")

# "la" only as a standalone word, so "Blade" or "Flame Lash" are skills
_LA_TOKEN = re.compile(r"\bla\b", re.IGNORECASE)


def is_light_attack(ability_name: str) -> bool:
    """Heuristic light attack detection from the ability name."""
    return "light attack" in ability_name.lower() or bool(_LA_TOKEN.search(ability_name))


def parse_line(line: str) -> LogEvent | None:
    """Parse one line into an event, or None if it matches neither format."""
    match = CLOCK_LINE.search(line)
    if match:
        hours, minutes, seconds, name = match.groups()
        timestamp = int(hours) * 3600 + int(minutes) * 60 + float(seconds)
    else:
        match = SECONDS_LINE.search(line)
        if not match:
            return None
        seconds, name = match.groups()
        timestamp = float(seconds)

    name = name.strip()
    return LogEvent(
        timestamp_seconds=timestamp,
        ability_name=name,
        is_light_attack=is_light_attack(name),
    )


def analyze_gaps(gaps: list[Gap], out_of_order_events: int = 0) -> GapAnalysis:
    if not gaps:
        return GapAnalysis(out_of_order_events=out_of_order_events)

    durations = [g.duration_seconds for g in gaps]
    return GapAnalysis(
        total_gaps=len(gaps),
        largest_gap=max(durations),
        average_gap_size=sum(durations) / len(durations),
        out_of_order_events=out_of_order_events,
    )


def parse_combat_log(
    log_text: str,
    *,
    gap_threshold: float = GAP_THRESHOLD_SECONDS,
) -> LogParseResult:
    """
    Parse a text log into cast events and the idle gaps between them.

    Events keep file order. A timestamp earlier than the previous one is
    tolerated: it never produces a gap, and it is counted in
    ``analysis.out_of_order_events``.

    Args:
        log_text: Multi-line log text
        gap_threshold: Delays strictly longer than this (seconds) are gaps

    Returns:
        LogParseResult with events, gaps, and gap statistics
    """
    events: list[LogEvent] = []
    gaps: list[Gap] = []
    out_of_order = 0
    previous: float | None = None
    skipped = 0

    for line_num, line in enumerate(log_text.splitlines(), start=1):
        if not line.strip():
            continue

        event = parse_line(line)
        if event is None:
            skipped += 1
            continue

        events.append(event)
        timestamp = event.timestamp_seconds

        if previous is not None:
            delta = timestamp - previous
            if delta < 0:
                out_of_order += 1
                logger.warning(
                    f"Line {line_num}: timestamp {timestamp} is earlier than previous {previous}"
                )
            elif delta > gap_threshold:
                gaps.append(Gap(start_seconds=previous, end_seconds=timestamp, duration_seconds=delta))

        previous = timestamp

    if skipped:
        logger.debug(f"Skipped {skipped} non-event line(s)")
    logger.info(f"Parsed {len(events)} events, {len(gaps)} gap(s) over {gap_threshold}s")

    return LogParseResult(events=events, gaps=gaps, analysis=analyze_gaps(gaps, out_of_order))
