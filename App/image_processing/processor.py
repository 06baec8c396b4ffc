"""Main sketch processor orchestrating the complete pipeline.

AIDEV-NOTE: This module owns the single live SourceImage and the current
SketchConfig. Every generation starts from a fresh copy of the source
buffer; outputs are recomputed, never patched.
"""

import io
import logging
from dataclasses import replace

from PIL import Image, ImageOps

from models import (
    ACCEPTED_MIME_TYPES,
    MAX_UPLOAD_BYTES,
    PRESETS,
    SETTING_ALIASES,
    SETTING_KEYS,
    DecodeError,
    ExportedSketch,
    ImageDimensions,
    SketchConfig,
    SketchStyle,
    SourceImage,
    ValidationError,
    clamp_percentage,
    parse_flag,
)

from .buffer import PixelBuffer
from .filters import adjust_brightness_contrast, invert
from .rendering import get_renderer
from .utils import (
    default_export_name,
    encode_buffer,
    reduce_to_8bit,
    scale_image_to_display,
)

logger = logging.getLogger(__name__)


class SketchProcessor:
    """Turns a loaded photo into a sketch according to the current settings."""

    def __init__(self, config: SketchConfig | None = None):
        self.config = replace(config) if config is not None else SketchConfig()
        self.source: SourceImage | None = None
        self._sketch: PixelBuffer | None = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @staticmethod
    def validate_upload(data: bytes, mime_type: str) -> None:
        """Reject uploads that must never reach the decoder.

        Raises:
            ValidationError: If the type is not JPEG/PNG or the data exceeds 10 MiB
        """
        if (mime_type or "").lower() not in ACCEPTED_MIME_TYPES:
            raise ValidationError("Please upload a JPG or PNG image")
        if len(data) > MAX_UPLOAD_BYTES:
            raise ValidationError("Image size must be less than 10MB")

    @staticmethod
    def decode_image(data: bytes) -> Image.Image:
        """Decode image bytes into an RGBA Pillow image.

        Raises:
            DecodeError: If the bytes are not a readable image
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            # Phone photos are stored sideways with an EXIF rotation tag
            image = ImageOps.exif_transpose(image)
            image = reduce_to_8bit(image)
            # AIDEV-NOTE: Always convert to RGBA for consistent processing
            if image.mode != "RGBA":
                image = image.convert("RGBA")
            return image
        except Exception as e:
            # Pillow plugins raise SyntaxError, struct.error etc. on corrupt chunks
            raise DecodeError(f"Failed to load image: {e}") from e

    def load_image(
        self, data: bytes, mime_type: str, name: str | None = None
    ) -> ImageDimensions:
        """Validate, decode and store an uploaded image, then sketch it.

        Args:
            data: Raw file bytes
            mime_type: Declared MIME type of the upload
            name: Optional file name for bookkeeping

        Returns:
            ImageDimensions of the stored image

        Raises:
            ValidationError: Wrong type or too large (nothing decoded)
            DecodeError: Corrupt data (previous image kept)
        """
        try:
            self.validate_upload(data, mime_type)
        except ValidationError as e:
            logger.warning("Rejected upload %s: %s", name or "<bytes>", e)
            raise
        image = self.decode_image(data)
        return self.load_decoded(image, name=name)

    def load_decoded(self, image: Image.Image, name: str | None = None) -> ImageDimensions:
        """Store an already-decoded image and generate the first sketch."""
        orig_width, orig_height = image.size
        scaled_image, scale_factor = scale_image_to_display(image)
        pixels = PixelBuffer.from_image(scaled_image)

        # Only replace the live image once everything above succeeded
        self.source = SourceImage(
            pixels=pixels,
            original_width=orig_width,
            original_height=orig_height,
            name=name,
        )
        logger.info(
            "Loaded %s: %dx%d -> %dx%d (scale %.3f)",
            name or "image",
            orig_width,
            orig_height,
            pixels.width,
            pixels.height,
            scale_factor,
        )

        self.generate_sketch()
        return self.get_image_dimensions()

    def clear(self) -> None:
        """Drop the source image and the last sketch."""
        self.source = None
        self._sketch = None

    def has_image(self) -> bool:
        return self.source is not None

    def get_image_dimensions(self) -> ImageDimensions | None:
        if self.source is None:
            return None
        return ImageDimensions(
            width=self.source.width,
            height=self.source.height,
            original_width=self.source.original_width,
            original_height=self.source.original_height,
        )

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self) -> SketchConfig:
        return replace(self.config)

    def update_setting(self, key: str, value) -> None:
        """Change one setting. Unknown keys are ignored."""
        key = SETTING_ALIASES.get(key, key)
        if key not in SETTING_KEYS:
            logger.debug("Ignoring unknown setting %r", key)
            return

        if key == "style":
            value = SketchStyle.parse(value)
        elif key == "invert":
            value = parse_flag(value)
        else:
            value = clamp_percentage(value)
        setattr(self.config, key, value)

    def apply_preset(self, name: str) -> SketchConfig | None:
        """Replace the whole config with a named preset.

        Returns:
            A copy of the new settings, or None if the preset does not exist
        """
        preset = PRESETS.get(name)
        if preset is None:
            logger.warning("Unknown preset %r", name)
            return None
        self.config = replace(preset)
        return self.get_settings()

    def reset(self) -> SketchConfig:
        """Restore default settings and regenerate if an image is loaded."""
        self.config = SketchConfig()
        if self.source is not None:
            self.generate_sketch()
        return self.get_settings()

    @staticmethod
    def preset_names() -> "list[str]":
        return list(PRESETS)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @property
    def sketch(self) -> PixelBuffer | None:
        """Last finished sketch, if any."""
        return self._sketch

    def generate_sketch(self) -> PixelBuffer | None:
        """Run the full pipeline on a fresh copy of the source image.

        Returns:
            The finished buffer, or None when no image is loaded
        """
        if self.source is None:
            return None

        config = self.config
        working = self.source.pixels.copy()

        render = get_renderer(config.style)
        result = render(working, config)

        adjust_brightness_contrast(result, config.contrast, config.brightness)
        if config.invert:
            invert(result)

        logger.debug("Generated %s sketch %s (%s)", config.style.value, result, config)
        self._sketch = result
        return result

    def export(self, base_name: str | None = None, fmt: str = "png") -> ExportedSketch:
        """Encode the current sketch for download.

        Raises:
            RuntimeError: If no sketch has been generated
            ValueError: If the format is not supported
        """
        if self._sketch is None:
            raise RuntimeError("No sketch to export; load an image first")

        data, mime_type = encode_buffer(self._sketch, fmt)
        extension = "jpg" if mime_type == "image/jpeg" else fmt.lower().lstrip(".")
        filename = f"{base_name or default_export_name()}.{extension}"
        logger.info("Exported %s (%d bytes)", filename, len(data))
        return ExportedSketch(filename=filename, data=data, mime_type=mime_type)
