"""Completeness check for extracted parse metrics."""

from __future__ import annotations

from parsesight.core.models import ParseMetrics, ValidationResult


def validate_ocr_data(metrics: ParseMetrics) -> ValidationResult:
    """
    Report which critical fields are absent and how to recover them.

    Presence only: values are not range-checked, so a negative dps passes.
    A field recognized as zero counts as present.
    """
    missing_fields: list[str] = []
    suggestions: list[str] = []

    if metrics.dps is None:
        missing_fields.append("dps")
        suggestions.append(
            "DPS value could not be extracted. Verify screenshot shows DPS clearly."
        )

    if metrics.active_time_seconds is None:
        missing_fields.append("activeTime")
        suggestions.append(
            'Active time not found. Check if "Active Time" or "Active" is visible.'
        )

    if metrics.light_attacks is None or metrics.light_attacks.count is None:
        missing_fields.append("lightAttacks.count")
        suggestions.append(
            "Light attack count missing. Ensure LA stats are visible in screenshot."
        )

    if not metrics.abilities:
        missing_fields.append("abilities")
        suggestions.append(
            "No abilities parsed. Use the Parse screen screenshot for ability breakdown."
        )

    return ValidationResult(
        is_complete=not missing_fields,
        missing_fields=missing_fields,
        suggestions=suggestions,
    )
