"""
Parse Diagnostic Engine

Evaluates the rule tables in ``parsesight.analysis.rules`` against a
ParseMetrics record, derives an overall rating, and renders a plain-text
summary. The engine accepts the same record whether it came from
screenshots or hand-entered/exported metrics.

Usage:
    from parsesight.analysis import analyze_parse

    result = analyze_parse(metrics)
    print(result.rating, len(result.issues))
    print(result.summary)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from parsesight.analysis.rules import RATING_BANDS, RULES, Rule, round_half_up
from parsesight.core.constants import SUMMARY_TOP_ISSUES, Rating, Severity
from parsesight.core.errors import IncompleteMetricsError
from parsesight.core.models import AnalysisResult, Issue, ParseMetrics

logger = logging.getLogger(__name__)


def evaluate_rule(rule: Rule, metrics: ParseMetrics) -> list[Issue]:
    """Apply one rule to every subject it finds in ``metrics``."""
    issues = []
    for subject in rule.subjects(metrics):
        band = rule.classify(subject.value)
        if band is None or band.severity is None:
            continue

        context = {**subject.context, "target": band.target}
        issues.append(
            Issue(
                category=rule.category,
                severity=band.severity,
                message=band.message.format(**context),
                recommendation=band.recommendation.format(**context),
                current_value=subject.current,
                target_value=band.target,
            )
        )
    return issues


def determine_rating(dps: float, issues: Sequence[Issue]) -> Rating:
    """Walk the rating bands top-down; the first match wins."""
    critical = sum(1 for i in issues if i.severity == Severity.CRITICAL)
    major = sum(1 for i in issues if i.severity == Severity.MAJOR)

    for band in RATING_BANDS:
        if band.predicate(dps, critical, major):
            return band.rating
    return Rating.POOR


def generate_summary(metrics: ParseMetrics, issues: Sequence[Issue], rating: Rating) -> str:
    """Human-readable report: rating, dps, issue counts, top priorities."""
    lines = [
        f"Parse Rating: {rating.value.upper()}",
        f"DPS: {round_half_up(metrics.dps):,} ({metrics.active_time_seconds:.1f}s active)",
        "",
    ]

    if not issues:
        lines.append("No major issues detected! Keep up the excellent performance.")
        return "\n".join(lines)

    critical = sum(1 for i in issues if i.severity == Severity.CRITICAL)
    major = sum(1 for i in issues if i.severity == Severity.MAJOR)
    minor = sum(1 for i in issues if i.severity == Severity.MINOR)

    lines.append(f"Issues Found: {critical} critical, {major} major, {minor} minor")
    lines.append("")
    lines.append("Top Priorities:")

    # sorted() is stable: equal severities keep evaluation order
    top_issues = sorted(issues, key=lambda i: i.severity.rank, reverse=True)[:SUMMARY_TOP_ISSUES]
    for issue in top_issues:
        lines.append(f"- [{issue.severity.value.upper()}] {issue.message}")
        lines.append(f"  -> {issue.recommendation}")

    return "\n".join(lines)


def analyze_parse(metrics: ParseMetrics) -> AnalysisResult:
    """
    Diagnose a parse.

    Only ``dps`` and ``active_time_seconds`` are required; every other
    absent field silently skips its rule group. The record is not modified.

    Raises:
        IncompleteMetricsError: If dps or active time is missing
    """
    missing = [
        name for name in ("dps", "active_time_seconds") if getattr(metrics, name) is None
    ]
    if missing:
        raise IncompleteMetricsError(missing)

    issues: list[Issue] = []
    for rule in RULES:
        found = evaluate_rule(rule, metrics)
        if found:
            logger.debug(f"Rule {rule.name}: {len(found)} issue(s)")
        issues.extend(found)

    rating = determine_rating(metrics.dps, issues)
    logger.info(f"Parse rated {rating.value} with {len(issues)} issue(s)")

    return AnalysisResult(
        rating=rating,
        issues=issues,
        summary=generate_summary(metrics, issues, rating),
    )
