"""
ParseSight - Constants

Defines screen layouts, issue taxonomy, and the numeric targets used by the
diagnostic rules. Values are tuned for single-target trial-dummy parses
recorded with Combat Metrics (CMX).
"""

from enum import StrEnum


class ScreenType(StrEnum):
    """CMX overlay layout shown in a screenshot."""

    INFO = "info"  # Character sheet / stat summary
    PARSE = "parse"  # Per-ability damage breakdown
    AUTO = "auto"  # Unknown, run every extractor


class IssueCategory(StrEnum):
    """Diagnostic rule groups."""

    DPS = "dps"
    ROTATION = "rotation"
    WEAVING = "weaving"
    BUFFS = "buffs"
    PENETRATION = "penetration"
    CRIT = "crit"


class Severity(StrEnum):
    """Issue severity, highest first."""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"

    @property
    def rank(self) -> int:
        """Numeric weight used to sort issues (critical > major > minor)."""
        return SEVERITY_RANK[self]


SEVERITY_RANK = {
    Severity.CRITICAL: 3,
    Severity.MAJOR: 2,
    Severity.MINOR: 1,
}


class Rating(StrEnum):
    """Overall parse rating."""

    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    POOR = "poor"


# =============================================================================
# Image preprocessing / OCR
# =============================================================================

# Upscale target for overlay screenshots (pixels)
DEFAULT_TARGET_WIDTH = 3000

# Tesseract page segmentation mode 6 = assume a single uniform block of text
TESSERACT_PAGE_SEG_MODE = 6
TESSERACT_LANGUAGE = "eng"

# Ability rows dealing less damage than this are OCR line-merge artifacts
ABILITY_DAMAGE_NOISE_FLOOR = 1000

# =============================================================================
# Log parsing
# =============================================================================

# Delay between consecutive casts that counts as a gap (seconds)
GAP_THRESHOLD_SECONDS = 1.0

# =============================================================================
# Diagnostic targets
# =============================================================================

DPS_EXCELLENT = 160_000
DPS_GOOD = 140_000
DPS_ACCEPTABLE = 130_000

# Spammable / beam should be the single largest damage source
TOP_ABILITY_MIN_PERCENT = 15.0

DOT_UPTIME_CRITICAL = 70.0
DOT_UPTIME_TARGET = 85.0

BAR_IMBALANCE_MAX_PERCENT = 30.0

# Light attack weave time (seconds)
WEAVE_TIME_CRITICAL = 0.25
WEAVE_TIME_MAJOR = 0.15

# Missed light attacks
MISSED_LA_CRITICAL = 20
MISSED_LA_MAJOR = 5

BUFF_UPTIME_CRITICAL = 70.0
BUFF_UPTIME_TARGET = 90.0

# Penetration needed to strip a trial dummy's resistances
PENETRATION_CAP = 18_200
PENETRATION_OVERCAP_TOLERANCE = 2_000
PENETRATION_CRITICAL_DEFICIT = 3_000

CRIT_CHANCE_MIN = 60.0
# Crit damage is a total multiplier expressed as percent
CRIT_DAMAGE_MIN = 115.0
CRIT_DAMAGE_MAX = 125.0

# Number of issues listed under "Top Priorities" in the summary
SUMMARY_TOP_ISSUES = 5
