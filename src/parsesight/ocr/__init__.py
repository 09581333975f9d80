"""
ParseSight OCR - screenshot extraction pipeline.

- preprocess: image normalization for recognition
- engine: scoped Tesseract adapter
- extractors: regex field extraction per overlay layout
- screenshot: single and batch orchestration
- validation: completeness check
"""

from parsesight.ocr.engine import TesseractEngine
from parsesight.ocr.extractors import extract_fields, extract_info_fields, extract_parse_fields
from parsesight.ocr.preprocess import preprocess_image
from parsesight.ocr.screenshot import ScreenshotParser, parse_screenshot, parse_screenshots
from parsesight.ocr.validation import validate_ocr_data

__all__ = [
    "ScreenshotParser",
    "TesseractEngine",
    "extract_fields",
    "extract_info_fields",
    "extract_parse_fields",
    "parse_screenshot",
    "parse_screenshots",
    "preprocess_image",
    "validate_ocr_data",
]
