"""Data models and constants for the Sketchify sketch engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from image_processing.buffer import PixelBuffer

# AIDEV-NOTE: Display bounding box - sketches are never computed above this size
MAX_DISPLAY_WIDTH = 800
MAX_DISPLAY_HEIGHT = 600

# Upload limits
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB
ACCEPTED_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png")

# One display frame at 60 Hz
REGENERATE_INTERVAL_MS = 16

EXPORT_PREFIX = "sketchify"

# Settings file path
SETTINGS_FILE = Path.home() / ".sketchify_settings.json"


# --- Errors ---


class SketchError(Exception):
    """Base class for sketch engine errors."""


class ValidationError(SketchError, ValueError):
    """Upload rejected before decode (wrong type or too large)."""


class DecodeError(SketchError, ValueError):
    """Image bytes could not be decoded."""


class BufferShapeError(SketchError, ValueError):
    """Two buffers fed to a blend operator have different dimensions."""


# --- Sketch configuration ---


class SketchStyle(Enum):
    """Sketch styles.

    AIDEV-NOTE: Each style maps to one compositor in image_processing.rendering.
    """

    PENCIL = "pencil"
    CHARCOAL = "charcoal"
    INK = "ink"
    DETAILED_PENCIL = "detailedPencil"

    @classmethod
    def parse(cls, value: "SketchStyle | str") -> "SketchStyle":
        """Resolve a style name, falling back to pencil for unknown values."""
        if isinstance(value, cls):
            return value
        name = str(value)
        if name == "detailed":
            return cls.DETAILED_PENCIL
        for style in cls:
            if name in (style.value, style.name, style.name.lower()):
                return style
        return cls.PENCIL


def clamp_percentage(value) -> int:
    """Coerce a slider value to an int in [0, 100]."""
    return max(0, min(100, int(value)))


FALSE_STRINGS = ("", "0", "false", "no", "off")


def parse_flag(value) -> bool:
    """Coerce a checkbox value; strings like "false" or "0" are False."""
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


@dataclass
class SketchConfig:
    """User-adjustable sketch parameters."""

    style: SketchStyle = SketchStyle.PENCIL
    intensity: int = 50  # 0-100, drives blur radius, curves, thresholds
    contrast: int = 50  # 0-100, 50 = unchanged
    brightness: int = 50  # 0-100, 50 = unchanged
    invert: bool = False  # Invert the final sketch

    def as_dict(self) -> dict:
        return {
            "style": self.style.value,
            "intensity": self.intensity,
            "contrast": self.contrast,
            "brightness": self.brightness,
            "invert": self.invert,
        }


SETTING_KEYS = ("style", "intensity", "contrast", "brightness", "invert")

# Key names used by the original web front end
SETTING_ALIASES = {"type": "style", "invertColors": "invert"}

# AIDEV-NOTE: Read-only preset table. Always hand out copies, never these objects.
PRESETS: "dict[str, SketchConfig]" = {
    "soft-pencil": SketchConfig(SketchStyle.PENCIL, 40, 45, 55, False),
    "dark-pencil": SketchConfig(SketchStyle.PENCIL, 70, 60, 45, False),
    "charcoal": SketchConfig(SketchStyle.CHARCOAL, 65, 70, 40, False),
    "ink": SketchConfig(SketchStyle.INK, 80, 85, 50, False),
}


# --- Image models ---


@dataclass(frozen=True)
class SourceImage:
    """Decoded original image at display resolution.

    AIDEV-NOTE: Created once per successful load and never mutated. Every
    sketch generation works on ``pixels.copy()``.
    """

    pixels: "PixelBuffer"
    original_width: int
    original_height: int
    name: str | None = None

    @property
    def width(self) -> int:
        return self.pixels.width

    @property
    def height(self) -> int:
        return self.pixels.height


@dataclass(frozen=True)
class ImageDimensions:
    """Display and natural size of the loaded image."""

    width: int
    height: int
    original_width: int
    original_height: int


@dataclass(frozen=True)
class ExportedSketch:
    """Encoded sketch ready for download."""

    filename: str
    data: bytes = field(repr=False)
    mime_type: str = "image/png"
