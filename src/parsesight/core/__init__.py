"""
ParseSight Core - Foundation modules shared by every pipeline stage.

- constants: Enums and diagnostic targets
- config: Application configuration management
- errors: Exception types
- models: Data contracts for module boundaries
"""

from parsesight.core.constants import IssueCategory, Rating, ScreenType, Severity
from parsesight.core.errors import (
    IncompleteMetricsError,
    ParseSightError,
    PreprocessingError,
    RecognitionError,
)
from parsesight.core.models import (
    AbilityMetric,
    AnalysisResult,
    BarBalance,
    BuffMetric,
    Gap,
    GapAnalysis,
    Issue,
    LightAttackStats,
    LogEvent,
    LogParseResult,
    OCRResult,
    ParseMetrics,
    Penetration,
    RawRecognition,
    ScreenshotInput,
    ValidationResult,
    WeavingResult,
)

__all__ = [
    # Enums
    "IssueCategory",
    "Rating",
    "ScreenType",
    "Severity",
    # Errors
    "IncompleteMetricsError",
    "ParseSightError",
    "PreprocessingError",
    "RecognitionError",
    # Models
    "AbilityMetric",
    "AnalysisResult",
    "BarBalance",
    "BuffMetric",
    "Gap",
    "GapAnalysis",
    "Issue",
    "LightAttackStats",
    "LogEvent",
    "LogParseResult",
    "OCRResult",
    "ParseMetrics",
    "Penetration",
    "RawRecognition",
    "ScreenshotInput",
    "ValidationResult",
    "WeavingResult",
]
