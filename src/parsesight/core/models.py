"""
Data Models for Parse Extraction and Diagnostics

Every record that crosses a module boundary is defined here.

ParseMetrics is a struct of optional fields: ``None`` means the value was
never recognized, ``0`` means it was recognized as zero. Extractors, the
screenshot merge, the completeness validator and the diagnostic engine all
rely on that distinction, so never default a missing field to zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from parsesight.core.constants import IssueCategory, Rating, ScreenType, Severity


def _compact(value: Any) -> Any:
    """Recursively convert dataclasses to dicts, dropping absent fields."""
    if hasattr(value, "__dataclass_fields__"):
        return {
            f.name: _compact(getattr(value, f.name))
            for f in fields(value)
            if getattr(value, f.name) is not None
        }
    if isinstance(value, list):
        return [_compact(v) for v in value]
    if isinstance(value, dict):
        return {k: _compact(v) for k, v in value.items()}
    return value


# =============================================================================
# OCR
# =============================================================================


@dataclass
class RawRecognition:
    """Text and confidence produced by one OCR pass over one image."""

    text: str
    confidence: float  # 0-100


# =============================================================================
# Parse Metrics
# =============================================================================


@dataclass
class AbilityMetric:
    """One row of the per-ability damage breakdown."""

    name: str
    total_damage: float
    percent_of_total: float
    count: int | None = None
    average_time_between_casts: float | None = None


@dataclass
class BarBalance:
    """Time share between the two ability bars. Need not sum to 100."""

    front_bar_percent: float | None = None
    back_bar_percent: float | None = None


@dataclass
class LightAttackStats:
    """Light attack (weave) statistics."""

    count: int | None = None
    total_damage: float | None = None
    average_weave_time_seconds: float | None = None
    miss_count: int | None = None
    ratio: float | None = None


@dataclass
class BuffMetric:
    """Buff uptime. ``is_permanent`` is declared by the caller, never inferred."""

    name: str
    uptime_percent: float
    is_permanent: bool = False


@dataclass
class Penetration:
    effective: float
    average: float


@dataclass
class ParseMetrics:
    """Normalized metrics record for a single parse.

    ``abilities`` keeps recognition order; sort explicitly when ranking.
    ``critical_damage_percent`` is a total multiplier (180 means 1.80x).
    """

    dps: float | None = None
    active_time_seconds: float | None = None
    total_damage: float | None = None
    abilities: list[AbilityMetric] | None = None
    dot_uptimes: dict[str, float] | None = None
    bar_balance: BarBalance | None = None
    light_attacks: LightAttackStats | None = None
    buffs: list[BuffMetric] | None = None
    penetration: Penetration | None = None
    critical_chance_percent: float | None = None
    critical_damage_percent: float | None = None

    def present_fields(self) -> list[str]:
        """Names of top-level fields that carry a value."""
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def merge(self, other: ParseMetrics) -> ParseMetrics:
        """Return a new record where every field present in ``other`` wins.

        Merge is shallow: a present ``light_attacks`` in ``other`` replaces
        the whole block, it is not combined field by field.
        """
        updates = {name: getattr(other, name) for name in other.present_fields()}
        return replace(self, **updates)

    def to_dict(self) -> dict[str, Any]:
        return _compact(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParseMetrics:
        """Build a record from a plain dict (e.g. a JSON/YAML metrics file).

        Raises:
            TypeError: If a nested block has unknown keys or is not a mapping.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise TypeError(f"Unknown metrics fields: {', '.join(sorted(unknown))}")

        kwargs: dict[str, Any] = dict(data)
        if data.get("abilities") is not None:
            kwargs["abilities"] = [AbilityMetric(**a) for a in data["abilities"]]
        if data.get("buffs") is not None:
            kwargs["buffs"] = [BuffMetric(**b) for b in data["buffs"]]
        if data.get("bar_balance") is not None:
            kwargs["bar_balance"] = BarBalance(**data["bar_balance"])
        if data.get("light_attacks") is not None:
            kwargs["light_attacks"] = LightAttackStats(**data["light_attacks"])
        if data.get("penetration") is not None:
            kwargs["penetration"] = Penetration(**data["penetration"])
        if data.get("dot_uptimes") is not None:
            dots = data["dot_uptimes"]
            if not isinstance(dots, dict):
                raise TypeError(f"dot_uptimes must be a mapping, got {type(dots).__name__}")
            kwargs["dot_uptimes"] = {str(k): float(v) for k, v in dots.items()}
        return cls(**kwargs)


# =============================================================================
# Log Events
# =============================================================================


@dataclass
class LogEvent:
    """A single cast recognized in a text log."""

    timestamp_seconds: float
    ability_name: str
    is_light_attack: bool

    def to_dict(self) -> dict[str, Any]:
        return _compact(self)


@dataclass
class Gap:
    """Idle time between two consecutive casts."""

    start_seconds: float
    end_seconds: float
    duration_seconds: float

    def to_dict(self) -> dict[str, Any]:
        return _compact(self)


@dataclass
class GapAnalysis:
    total_gaps: int = 0
    largest_gap: float = 0.0
    average_gap_size: float = 0.0
    out_of_order_events: int = 0


@dataclass
class LogParseResult:
    events: list[LogEvent] = field(default_factory=list)
    gaps: list[Gap] = field(default_factory=list)
    analysis: GapAnalysis = field(default_factory=GapAnalysis)

    def to_dict(self) -> dict[str, Any]:
        return _compact(self)


@dataclass
class WeavingResult:
    missed_weaves: int = 0
    double_weaves: int = 0
    good_weaves: int = 0
    weave_efficiency: float = 0.0  # Percentage

    def to_dict(self) -> dict[str, Any]:
        return _compact(self)


# =============================================================================
# Diagnostics
# =============================================================================


@dataclass
class Issue:
    """A single diagnosed problem with a parse."""

    category: IssueCategory
    severity: Severity
    message: str
    recommendation: str
    current_value: float | str | None = None
    target_value: float | str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = _compact(self)
        result["category"] = self.category.value
        result["severity"] = self.severity.value
        return result


@dataclass
class AnalysisResult:
    rating: Rating
    issues: list[Issue]
    summary: str

    def count(self, severity: Severity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rating": self.rating.value,
            "issues": [issue.to_dict() for issue in self.issues],
            "summary": self.summary,
        }


# =============================================================================
# Pipeline Results
# =============================================================================


@dataclass
class ScreenshotInput:
    """One image of a batch, with the layout the caller says it shows."""

    path: Path | str
    screen_type: ScreenType = ScreenType.AUTO

    @classmethod
    def coerce(cls, item: Any) -> ScreenshotInput:
        """Accept a ScreenshotInput, a ``(path, type)`` pair or a ``{path, type}`` dict."""
        if isinstance(item, cls):
            return item
        if isinstance(item, dict):
            return cls(item["path"], ScreenType(item.get("type", ScreenType.AUTO)))
        if isinstance(item, (tuple, list)) and len(item) == 2:
            return cls(item[0], ScreenType(item[1]))
        raise TypeError(f"Cannot interpret {item!r} as a screenshot input")


@dataclass
class OCRResult:
    """Outcome of a screenshot extraction call. Never raised, always returned."""

    success: bool
    data: ParseMetrics | None = None
    raw_text: str | None = None
    confidence: float | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            result["data"] = self.data.to_dict()
        if self.raw_text is not None:
            result["raw_text"] = self.raw_text
        if self.confidence is not None:
            result["confidence"] = self.confidence
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class ValidationResult:
    is_complete: bool
    missing_fields: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return _compact(self)
