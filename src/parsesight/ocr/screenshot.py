"""
Screenshot Orchestrator - preprocess, recognize, extract, merge.

Handles:
- Single screenshots (info, parse, or auto-detected layout)
- Batches of screenshots, run concurrently and merged in input order
- Aggregate OCR confidence

Nothing raises past this module's entry points: every failure comes back as
``OCRResult(success=False, error=...)``.

Usage:
    from parsesight.ocr.screenshot import parse_screenshot, parse_screenshots

    result = parse_screenshot("cmx-info.png", "info")
    merged = parse_screenshots([("cmx-info.png", "info"), ("cmx-parse.png", "parse")])
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from parsesight.core.config import BatchConfig, OcrConfig, get_config
from parsesight.core.constants import ScreenType
from parsesight.core.errors import ParseSightError
from parsesight.core.models import OCRResult, ParseMetrics, ScreenshotInput
from parsesight.ocr.engine import TesseractEngine
from parsesight.ocr.extractors import extract_fields
from parsesight.ocr.preprocess import preprocess_image, save_debug_image

logger = logging.getLogger(__name__)

EngineFactory = Callable[[OcrConfig], TesseractEngine]


def _describe(image: bytes | str | Path) -> str:
    if isinstance(image, (bytes, bytearray, memoryview)):
        return f"<{len(image)} bytes>"
    return Path(image).name


class ScreenshotParser:
    """
    Runs the screenshot pipeline: normalizer -> recognizer -> extractors.

    A fresh recognition engine is acquired for each image and released when
    that image is done, whether it succeeded or not.
    """

    def __init__(
        self,
        ocr_config: OcrConfig | None = None,
        batch_config: BatchConfig | None = None,
        *,
        engine_factory: EngineFactory = TesseractEngine,
    ):
        if ocr_config is None or batch_config is None:
            config = get_config()
            ocr_config = ocr_config or config.ocr
            batch_config = batch_config or config.batch
        self.ocr_config = ocr_config
        self.batch_config = batch_config
        self._engine_factory = engine_factory

    def parse(
        self,
        image: bytes | str | Path,
        screen_type: ScreenType | str = ScreenType.AUTO,
        *,
        debug: bool = False,
    ) -> OCRResult:
        """
        Extract metrics from one screenshot.

        Args:
            image: Path to the screenshot, or its encoded bytes
            screen_type: "info", "parse" or "auto" (run both extractors)
            debug: Save the preprocessed image next to the source file

        Returns:
            OCRResult with data, raw text and confidence, or an error
        """
        label = _describe(image)
        try:
            screen_type = ScreenType(screen_type)
            processed = preprocess_image(image, target_width=self.ocr_config.target_width)

            if (debug or self.ocr_config.save_debug_image) and isinstance(image, (str, Path)):
                save_debug_image(processed, image)

            with self._engine_factory(self.ocr_config) as engine:
                recognition = engine.recognize(processed)

            data = extract_fields(recognition.text, screen_type)
        except (ParseSightError, ValueError, OSError) as e:
            logger.error(f"Failed to parse screenshot {label}: {e}")
            return OCRResult(success=False, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error parsing screenshot {label}")
            return OCRResult(success=False, error=str(e))

        logger.info(
            f"Parsed {label} as {screen_type.value}: "
            f"{len(data.present_fields())} field(s), confidence {recognition.confidence:.1f}"
        )
        return OCRResult(
            success=True,
            data=data,
            raw_text=recognition.text,
            confidence=recognition.confidence,
        )

    def parse_batch(self, screenshots: Iterable[ScreenshotInput | Any]) -> OCRResult:
        """
        Extract and merge metrics from several screenshots.

        Any single failure fails the whole batch. On success fields are
        merged last-write-wins in input order and confidence is the mean.
        """
        try:
            inputs = [ScreenshotInput.coerce(item) for item in screenshots]
        except (TypeError, ValueError, KeyError) as e:
            return OCRResult(success=False, error=f"Invalid screenshot list: {e}")

        if not inputs:
            return OCRResult(success=False, error="No screenshots provided")

        results = self._run_all(inputs)

        failures = [r for r in results if not r.success]
        if failures:
            error = (
                f"Failed to parse {len(failures)} screenshot(s): "
                f"{', '.join(str(f.error) for f in failures)}"
            )
            logger.error(error)
            return OCRResult(success=False, error=error)

        merged = ParseMetrics()
        total_confidence = 0.0
        for result in results:
            if result.data is not None:
                merged = merged.merge(result.data)
            total_confidence += result.confidence or 0.0

        return OCRResult(
            success=True,
            data=merged,
            confidence=total_confidence / len(results),
        )

    def _run_all(self, inputs: list[ScreenshotInput]) -> list[OCRResult]:
        """Run every input; results come back in input order."""

        def run(item: ScreenshotInput) -> OCRResult:
            return self.parse(item.path, item.screen_type)

        if not self.batch_config.concurrent or len(inputs) == 1:
            return [run(item) for item in inputs]

        workers = max(1, min(self.batch_config.max_workers, len(inputs)))
        logger.info(f"Parsing {len(inputs)} screenshots with {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(run, inputs))


def parse_screenshot(
    image: bytes | str | Path,
    screen_type: ScreenType | str = ScreenType.AUTO,
    *,
    debug: bool = False,
) -> OCRResult:
    """Convenience wrapper around ScreenshotParser.parse with global config."""
    return ScreenshotParser().parse(image, screen_type, debug=debug)


def parse_screenshots(screenshots: Iterable[ScreenshotInput | Any]) -> OCRResult:
    """Convenience wrapper around ScreenshotParser.parse_batch with global config."""
    return ScreenshotParser().parse_batch(screenshots)
