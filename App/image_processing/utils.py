"""Utility functions for sizing, encoding and naming sketch images.

AIDEV-NOTE: This module contains helpers around the pixel pipeline: fitting
an upload into the display box, encoding finished buffers and guessing MIME
types for files handed to the CLI.
"""

import io
import mimetypes
from datetime import date
from pathlib import Path

import numpy as np
from PIL import Image

from models import EXPORT_PREFIX, MAX_DISPLAY_HEIGHT, MAX_DISPLAY_WIDTH

from .buffer import PixelBuffer

# Pillow format name and MIME type per export extension
EXPORT_FORMATS = {
    "png": ("PNG", "image/png"),
    "jpeg": ("JPEG", "image/jpeg"),
    "jpg": ("JPEG", "image/jpeg"),
    "webp": ("WEBP", "image/webp"),
}


def fit_within_bounds(
    width: int,
    height: int,
    max_width: int = MAX_DISPLAY_WIDTH,
    max_height: int = MAX_DISPLAY_HEIGHT,
) -> "tuple[int, int]":
    """Shrink (never enlarge) a size to fit a box, keeping the aspect ratio.

    Args:
        width: Natural image width in pixels
        height: Natural image height in pixels
        max_width: Bounding box width
        max_height: Bounding box height

    Returns:
        Tuple of (display_width, display_height), each at least 1

    AIDEV-NOTE: Width is fitted first, then height. Fractional results are
    truncated, the same way a canvas truncates a fractional width.
    """
    new_width = float(width)
    new_height = float(height)

    if new_width > max_width:
        new_height = (max_width / new_width) * new_height
        new_width = max_width

    if new_height > max_height:
        new_width = (max_height / new_height) * new_width
        new_height = max_height

    return max(1, int(new_width)), max(1, int(new_height))


def reduce_to_8bit(image: Image.Image) -> Image.Image:
    """Rescale 16/32-bit integer gray images to 8-bit "L".

    AIDEV-NOTE: Pillow's convert() clips these modes at 255 instead of
    scaling, which turns a dark 16-bit PNG white. Values are mapped
    0-65535 -> 0-255 with rounding, like a browser decoder.
    """
    if image.mode not in ("I", "I;16", "I;16B", "I;16L", "I;16N"):
        return image
    values = np.asarray(image, dtype=np.float64)
    gray = np.clip(np.rint(values / 257), 0, 255).astype(np.uint8)
    return Image.fromarray(gray)


def scale_image_to_display(image: Image.Image) -> "tuple[Image.Image, float]":
    """Resize a decoded image into the display box.

    Returns:
        Tuple of (scaled_image, scale_factor)
    """
    orig_width, orig_height = image.size
    new_width, new_height = fit_within_bounds(orig_width, orig_height)

    if (new_width, new_height) == (orig_width, orig_height):
        return image, 1.0

    scaled_image = image.resize((new_width, new_height), Image.Resampling.LANCZOS)
    return scaled_image, new_width / orig_width


def encode_buffer(buffer: PixelBuffer, fmt: str = "png") -> "tuple[bytes, str]":
    """Encode a buffer for download.

    Returns:
        Tuple of (encoded bytes, mime type)

    Raises:
        ValueError: If the format is not supported
    """
    key = fmt.lower().lstrip(".")
    if key not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    pil_format, mime_type = EXPORT_FORMATS[key]

    image = buffer.to_image()
    if pil_format == "JPEG":
        # No alpha channel in JPEG
        image = image.convert("RGB")

    out = io.BytesIO()
    image.save(out, format=pil_format)
    return out.getvalue(), mime_type


def default_export_name(prefix: str = EXPORT_PREFIX, today: date | None = None) -> str:
    """Download base name, e.g. ``sketchify-2024-05-01``."""
    today = today or date.today()
    return f"{prefix}-{today.isoformat()}"


def guess_mime_type(path: str | Path) -> str:
    """MIME type from a file extension, empty string when unknown."""
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or ""
