"""Rendering methods for the different sketch styles.

AIDEV-NOTE: Each compositor receives a working copy of the source image and
the current SketchConfig, chains primitive filters in a fixed order and
returns the finished buffer. Brightness/contrast and the final invert are
applied afterwards by the processor, never here.
"""

from typing import TYPE_CHECKING, Callable

from models import SketchStyle

from .buffer import PixelBuffer
from .filters import (
    add_noise,
    apply_color_dodge,
    detect_edges,
    enhance_curve,
    gaussian_blur,
    invert,
    multiply_blend,
    threshold,
    to_grayscale,
    weighted_blend,
)

if TYPE_CHECKING:
    from models import SketchConfig

Compositor = Callable[[PixelBuffer, "SketchConfig"], PixelBuffer]

PENCIL_BLUR_RADIUS = 2
CHARCOAL_NOISE = 15
DETAIL_EDGE_THRESHOLD = 40


def render_pencil(buffer: PixelBuffer, config: "SketchConfig") -> PixelBuffer:
    """Classic dodge-and-burn pencil sketch.

    Gray image dodged by its own blurred negative. Intensity sets how many
    blur passes soften the negative, then drives the final level curve.
    """
    to_grayscale(buffer)

    blurred = invert(buffer.copy())
    passes = max(1, config.intensity // 15)
    for _ in range(passes):
        gaussian_blur(blurred, PENCIL_BLUR_RADIUS)

    apply_color_dodge(buffer, blurred)
    return enhance_curve(buffer, config.intensity)


def render_charcoal(buffer: PixelBuffer, config: "SketchConfig") -> PixelBuffer:
    """Darkened gray mixed with a Sobel edge map plus grain."""
    to_grayscale(buffer)

    edges = detect_edges(buffer.copy(), 100 - config.intensity)

    blend_factor = config.intensity / 100
    weighted_blend(
        buffer,
        edges,
        base_weight=0.7 * (1 - blend_factor * 0.5),
        overlay_weight=blend_factor * 0.5,
    )
    return add_noise(buffer, CHARCOAL_NOISE)


def render_ink(buffer: PixelBuffer, config: "SketchConfig") -> PixelBuffer:
    """Pure black-and-white line drawing."""
    to_grayscale(buffer)
    detect_edges(buffer, max(10, 80 - config.intensity))
    return threshold(buffer, 255 - config.intensity * 2)


def render_detailed_pencil(buffer: PixelBuffer, config: "SketchConfig") -> PixelBuffer:
    """Light-blur pencil sketch darkened along fixed-threshold edges."""
    # The working copy is still the untouched original here
    edges = buffer.copy()

    to_grayscale(buffer)
    blurred = gaussian_blur(invert(buffer.copy()), 1)
    apply_color_dodge(buffer, blurred)

    to_grayscale(edges)
    detect_edges(edges, DETAIL_EDGE_THRESHOLD)

    multiply_blend(buffer, edges)
    return enhance_curve(buffer, config.intensity)


COMPOSITORS: "dict[SketchStyle, Compositor]" = {
    SketchStyle.PENCIL: render_pencil,
    SketchStyle.CHARCOAL: render_charcoal,
    SketchStyle.INK: render_ink,
    SketchStyle.DETAILED_PENCIL: render_detailed_pencil,
}


def get_renderer(style: "SketchStyle | str") -> Compositor:
    """Look up the compositor for a style; unknown styles render as pencil."""
    return COMPOSITORS.get(SketchStyle.parse(style), render_pencil)
