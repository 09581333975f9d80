"""
Text Recognition Adapter (Tesseract via pytesseract)

The engine is a scoped resource: acquire it with ``with TesseractEngine() as
engine`` for a single recognition call and let the context manager release
it on both success and failure paths. A released engine refuses further
work, and any process-wide pytesseract setting it changed (the tesseract
binary path) is restored on release.

Each image is recognized in a single tesseract run: text and word
confidences both come from ``image_to_data``.

Usage:
    from parsesight.ocr.engine import TesseractEngine

    with TesseractEngine() as engine:
        recognition = engine.recognize(png_bytes)
    print(recognition.text, recognition.confidence)
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import cv2
import numpy as np
import pytesseract

from parsesight.core.config import OcrConfig
from parsesight.core.errors import RecognitionError
from parsesight.core.models import RawRecognition

logger = logging.getLogger(__name__)

# Held for the whole scope of an engine that overrides pytesseract's
# module-global binary path
_TESSERACT_CMD_LOCK = threading.Lock()


class TesseractEngine:
    """Single-use Tesseract wrapper tuned for sparse overlay panels."""

    def __init__(self, config: OcrConfig | None = None):
        self.config = config or OcrConfig()
        self._open = False
        self._saved_cmd: str | None = None
        self._holds_cmd_lock = False

    @property
    def tesseract_config(self) -> str:
        """Command-line flags passed to tesseract."""
        flags = [f"--psm {self.config.page_segmentation_mode}"]
        if self.config.preserve_interword_spaces:
            flags.append("-c preserve_interword_spaces=1")
        return " ".join(flags)

    def open(self) -> TesseractEngine:
        if self._open:
            return self

        if self.config.tesseract_cmd:
            _TESSERACT_CMD_LOCK.acquire()
            self._holds_cmd_lock = True
            self._saved_cmd = pytesseract.pytesseract.tesseract_cmd
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd

        self._open = True
        logger.debug("Tesseract engine acquired")
        return self

    def close(self) -> None:
        if self._holds_cmd_lock:
            pytesseract.pytesseract.tesseract_cmd = self._saved_cmd
            self._saved_cmd = None
            self._holds_cmd_lock = False
            _TESSERACT_CMD_LOCK.release()

        if self._open:
            logger.debug("Tesseract engine released")
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> TesseractEngine:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def recognize(self, image_bytes: bytes) -> RawRecognition:
        """
        Recognize text in a preprocessed image.

        Low confidence is not an error; callers decide what to do with it.

        Raises:
            RecognitionError: If the engine is closed, the bytes cannot be
                decoded, or tesseract itself fails
        """
        if not self._open:
            raise RecognitionError("Tesseract engine used outside its scope")

        img = cv2.imdecode(np.frombuffer(image_bytes, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if img is None:
            raise RecognitionError("Recognition failed: cannot decode preprocessed image")

        try:
            data = pytesseract.image_to_data(
                img,
                lang=self.config.language,
                config=self.tesseract_config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise RecognitionError(f"Recognition failed: {e}") from e

        text = text_from_data(data)
        confidence = mean_word_confidence(data.get("conf", []))
        logger.debug(f"Recognized {len(text)} characters (confidence {confidence:.1f})")
        return RawRecognition(text=text, confidence=confidence)


def text_from_data(data: dict[str, Any]) -> str:
    """Rebuild line-oriented text from ``image_to_data`` word boxes.

    Words are grouped by (block, paragraph, line) in reading order and
    joined with single spaces, one output line per tesseract line.
    """
    lines: dict[tuple[int, int, int], list[str]] = {}
    words = data.get("text", [])
    for i, word in enumerate(words):
        word = str(word).strip()
        if not word:
            continue
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        lines.setdefault(key, []).append(word)

    return "\n".join(" ".join(line) for line in lines.values())


def mean_word_confidence(confidences: list) -> float:
    """Average the per-word confidences, skipping tesseract's -1 for non-words."""
    values = []
    for conf in confidences:
        try:
            value = float(conf)
        except (TypeError, ValueError):
            continue
        if value >= 0:
            values.append(value)

    if not values:
        return 0.0
    return max(0.0, min(100.0, sum(values) / len(values)))
