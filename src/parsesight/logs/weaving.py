"""
Light attack weaving classification.

Each adjacent pair of casts is classified by whether the two events are
light attacks:

    (skill, skill)  missed weave
    (LA, LA)        double weave
    (LA, skill)     good weave
    (skill, LA)     not counted; it sets up the next pair
"""

from __future__ import annotations

from collections.abc import Sequence

from parsesight.core.models import LogEvent, WeavingResult


def validate_weaving(events: Sequence[LogEvent]) -> WeavingResult:
    """Count weave outcomes and the share of transitions that were good weaves."""
    missed = double = good = 0

    for current, following in zip(events, events[1:]):
        if not current.is_light_attack and not following.is_light_attack:
            missed += 1
        elif current.is_light_attack and following.is_light_attack:
            double += 1
        elif current.is_light_attack:
            good += 1

    transitions = len(events) - 1
    efficiency = (good / transitions) * 100 if transitions > 0 else 0.0

    return WeavingResult(
        missed_weaves=missed,
        double_weaves=double,
        good_weaves=good,
        weave_efficiency=efficiency,
    )
