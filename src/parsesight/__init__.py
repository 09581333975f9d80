"""
ParseSight - Combat Metrics parse extraction and diagnostics

Reads CMX overlay screenshots (via OCR) or timestamped cast logs, normalizes
them into a ParseMetrics record, and rates the parse against fixed targets
for DPS, rotation, weaving, buffs, penetration and crit.

Usage:
    from parsesight import parse_screenshots, analyze_parse

    ocr = parse_screenshots([("info.png", "info"), ("parse.png", "parse")])
    if ocr.success:
        result = analyze_parse(ocr.data)
        print(result.summary)
"""

__version__ = "0.1.0"
__author__ = "ParseSight Contributors"


def __getattr__(name):
    """Lazy import so OpenCV/Tesseract load only when screenshots are used."""
    if name == "parse_screenshot":
        from parsesight.ocr.screenshot import parse_screenshot
        return parse_screenshot
    elif name == "parse_screenshots":
        from parsesight.ocr.screenshot import parse_screenshots
        return parse_screenshots
    elif name == "ScreenshotParser":
        from parsesight.ocr.screenshot import ScreenshotParser
        return ScreenshotParser
    elif name == "validate_ocr_data":
        from parsesight.ocr.validation import validate_ocr_data
        return validate_ocr_data
    elif name == "parse_combat_log":
        from parsesight.logs.parser import parse_combat_log
        return parse_combat_log
    elif name == "validate_weaving":
        from parsesight.logs.weaving import validate_weaving
        return validate_weaving
    elif name == "analyze_parse":
        from parsesight.analysis.diagnostics import analyze_parse
        return analyze_parse
    elif name == "ParseMetrics":
        from parsesight.core.models import ParseMetrics
        return ParseMetrics
    raise AttributeError(f"module 'parsesight' has no attribute '{name}'")


__all__ = [
    "__version__",
    "ParseMetrics",
    "ScreenshotParser",
    "analyze_parse",
    "parse_combat_log",
    "parse_screenshot",
    "parse_screenshots",
    "validate_ocr_data",
    "validate_weaving",
]
