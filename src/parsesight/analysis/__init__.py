"""
ParseSight Analysis - diagnostic rule engine.

- rules: decision tables (thresholds, severities, messages, rating bands)
- diagnostics: rule evaluation, rating and summary
"""

from parsesight.analysis.diagnostics import (
    analyze_parse,
    determine_rating,
    evaluate_rule,
    generate_summary,
)
from parsesight.analysis.rules import RATING_BANDS, RULES, Band, RatingBand, Rule

__all__ = [
    "RATING_BANDS",
    "RULES",
    "Band",
    "RatingBand",
    "Rule",
    "analyze_parse",
    "determine_rating",
    "evaluate_rule",
    "generate_summary",
]
