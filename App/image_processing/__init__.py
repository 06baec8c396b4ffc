"""Image processing pipeline for photo-to-sketch conversion.

AIDEV-NOTE: This package handles the complete pipeline from a decoded photo
to a finished sketch buffer. Organized into modular components:
- buffer: PixelBuffer, the RGBA grid every filter works on
- filters: Primitive per-pixel and convolution filters
- rendering: Style compositors (pencil, charcoal, ink, detailed pencil)
- processor: Main SketchProcessor orchestrator
- utils: Display fitting, encoding and naming helpers
"""

from .buffer import PixelBuffer
from .processor import SketchProcessor
from .rendering import get_renderer

__all__ = ["PixelBuffer", "SketchProcessor", "get_renderer"]
