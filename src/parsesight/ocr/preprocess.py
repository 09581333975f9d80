"""
Image Normalizer for CMX Overlay Screenshots

Turns a screenshot of a dark-background overlay panel into a high-contrast
grayscale PNG that Tesseract reads reliably.

Fixed pipeline order:
1. Upscale toward the target width (Lanczos), never shrink
2. Grayscale
3. Min-max level normalization (contrast stretch)
4. Unsharp-mask sharpening

The input is assumed to be cropped to a single UI panel; no
deskewing or text-region detection is done.
"""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from parsesight.core.constants import DEFAULT_TARGET_WIDTH
from parsesight.core.errors import PreprocessingError

logger = logging.getLogger(__name__)

# Unsharp mask: out = img * (1 + amount) - blur * amount
SHARPEN_SIGMA = 1.0
SHARPEN_AMOUNT = 0.5


def load_image_bytes(image: bytes | str | Path) -> bytes:
    """Return raw bytes for a path or pass bytes through."""
    if isinstance(image, (bytes, bytearray, memoryview)):
        return bytes(image)

    path = Path(image)
    try:
        return path.read_bytes()
    except OSError as e:
        raise PreprocessingError(f"Cannot read image {path}: {e}") from e


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes into a BGR array."""
    if not data:
        raise PreprocessingError("Image preprocessing failed: empty image data")

    buffer = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if img is None:
        raise PreprocessingError("Image preprocessing failed: unsupported or corrupt image data")
    return img


def upscale(img: np.ndarray, target_width: int = DEFAULT_TARGET_WIDTH) -> np.ndarray:
    """Resize to ``target_width`` preserving aspect ratio; wider images are kept as-is."""
    height, width = img.shape[:2]
    if width >= target_width:
        return img

    scale = target_width / width
    new_size = (target_width, max(1, round(height * scale)))
    return cv2.resize(img, new_size, interpolation=cv2.INTER_LANCZOS4)


def to_grayscale(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        return img
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


def normalize_levels(gray: np.ndarray) -> np.ndarray:
    """Stretch intensities to the full 0-255 range."""
    return cv2.normalize(gray, None, alpha=0, beta=255, norm_type=cv2.NORM_MINMAX)


def sharpen(gray: np.ndarray) -> np.ndarray:
    blurred = cv2.GaussianBlur(gray, (0, 0), SHARPEN_SIGMA)
    return cv2.addWeighted(gray, 1.0 + SHARPEN_AMOUNT, blurred, -SHARPEN_AMOUNT, 0)


def normalize_array(img: np.ndarray, target_width: int = DEFAULT_TARGET_WIDTH) -> np.ndarray:
    """Run the full transform on a decoded image."""
    img = upscale(img, target_width)
    gray = to_grayscale(img)
    gray = normalize_levels(gray)
    return sharpen(gray)


def preprocess_image(
    image: bytes | str | Path,
    *,
    target_width: int = DEFAULT_TARGET_WIDTH,
) -> bytes:
    """
    Preprocess a screenshot for text recognition.

    Args:
        image: Path to an image file, or the encoded image bytes
        target_width: Width to upscale narrower images to

    Returns:
        PNG-encoded grayscale image bytes

    Raises:
        PreprocessingError: If the image cannot be read or decoded
    """
    img = decode_image(load_image_bytes(image))
    height, width = img.shape[:2]

    processed = normalize_array(img, target_width)

    ok, encoded = cv2.imencode(".png", processed)
    if not ok:
        raise PreprocessingError("Image preprocessing failed: PNG encoding error")

    logger.debug(
        f"Preprocessed image {width}x{height} -> "
        f"{processed.shape[1]}x{processed.shape[0]}"
    )
    return encoded.tobytes()


def save_debug_image(processed: bytes, source_path: str | Path) -> Path:
    """Write preprocessed bytes next to the source as ``<stem>-debug.png``."""
    source_path = Path(source_path)
    debug_path = source_path.with_name(f"{source_path.stem}-debug.png")
    debug_path.write_bytes(processed)
    logger.info(f"Debug image saved to: {debug_path}")
    return debug_path
