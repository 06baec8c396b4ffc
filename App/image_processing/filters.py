"""Primitive pixel filters used by the sketch compositors.

AIDEV-NOTE: Every filter mutates the buffer it is given and returns it.
Results are rounded half-to-even and clamped to [0, 255] on write, matching
how browser canvas pixel arrays store floats. Luminance-only filters read the
R channel and replicate the result to R, G and B; alpha is left alone unless
noted.
"""

import numpy as np

from models import BufferShapeError

from .buffer import PixelBuffer

LUMA_WEIGHTS = (0.299, 0.587, 0.114)

SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)


def _to_uint8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def _gray(buffer: PixelBuffer) -> np.ndarray:
    return buffer.data[..., 0].astype(np.float64)


def _store_gray(buffer: PixelBuffer, values: np.ndarray) -> PixelBuffer:
    gray = _to_uint8(values)
    buffer.data[..., 0] = gray
    buffer.data[..., 1] = gray
    buffer.data[..., 2] = gray
    return buffer


def _check_shapes(base: PixelBuffer, other: PixelBuffer, operation: str) -> None:
    if not base.same_shape(other):
        raise BufferShapeError(
            f"{operation}: buffer size mismatch "
            f"({base.width}x{base.height} vs {other.width}x{other.height})"
        )


def to_grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """Replace RGB with Rec. 601 luminance."""
    rgb = buffer.data[..., :3].astype(np.float64)
    r_weight, g_weight, b_weight = LUMA_WEIGHTS
    gray = rgb[..., 0] * r_weight + rgb[..., 1] * g_weight + rgb[..., 2] * b_weight
    return _store_gray(buffer, gray)


def gaussian_kernel(radius: int) -> np.ndarray:
    """Build a normalized (2*radius+1)^2 Gaussian kernel, sigma = size / 3."""
    size = radius * 2 + 1
    sigma = size / 3
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    dy, dx = np.meshgrid(offsets, offsets, indexing="ij")
    kernel = np.exp(-(dx * dx + dy * dy) / (2 * sigma * sigma))
    return kernel / kernel.sum()


def gaussian_blur(buffer: PixelBuffer, radius: int = 1) -> PixelBuffer:
    """Blur RGB with a square Gaussian kernel.

    Reads from an unmodified copy of the input. Pixels closer than ``radius``
    to any edge are left as they were (no edge padding).
    """
    height, width = buffer.height, buffer.width
    if radius < 1 or height <= 2 * radius or width <= 2 * radius:
        return buffer

    source = buffer.data[..., :3].astype(np.float64)
    kernel = gaussian_kernel(radius)
    size = kernel.shape[0]
    inner_h = height - 2 * radius
    inner_w = width - 2 * radius

    acc = np.zeros((inner_h, inner_w, 3), dtype=np.float64)
    for ky in range(size):
        for kx in range(size):
            acc += kernel[ky, kx] * source[ky:ky + inner_h, kx:kx + inner_w]

    buffer.data[radius:height - radius, radius:width - radius, :3] = _to_uint8(acc)
    return buffer


def invert(buffer: PixelBuffer) -> PixelBuffer:
    buffer.data[..., :3] = 255 - buffer.data[..., :3]
    return buffer


def color_dodge(base, blend) -> np.ndarray:
    """Color dodge on raw channel values (scalars or arrays)."""
    base = np.asarray(base, dtype=np.int64)
    blend = np.asarray(blend, dtype=np.int64)
    saturated = blend == 255
    denominator = np.where(saturated, 1, 255 - blend)
    dodged = np.minimum(255, (base * 256) // denominator)
    return np.where(saturated, 255, dodged)


def apply_color_dodge(base: PixelBuffer, blend: PixelBuffer) -> PixelBuffer:
    """Dodge ``base`` by ``blend`` pixel-wise; the result overwrites ``base``."""
    _check_shapes(base, blend, "color dodge")
    base.data[..., :3] = color_dodge(base.data[..., :3], blend.data[..., :3]).astype(np.uint8)
    return base


def detect_edges(buffer: PixelBuffer, threshold: float = 30) -> PixelBuffer:
    """Sobel edge map: dark lines on white.

    Magnitudes above ``threshold`` become 0, everything else 255, with alpha
    forced opaque. The 1px frame keeps its previous value.
    """
    height, width = buffer.height, buffer.width
    if height < 3 or width < 3:
        return buffer

    gray = _gray(buffer)
    inner_h = height - 2
    inner_w = width - 2
    gx = np.zeros((inner_h, inner_w), dtype=np.float64)
    gy = np.zeros((inner_h, inner_w), dtype=np.float64)
    for ky in range(3):
        for kx in range(3):
            window = gray[ky:ky + inner_h, kx:kx + inner_w]
            gx += SOBEL_X[ky, kx] * window
            gy += SOBEL_Y[ky, kx] * window

    magnitude = np.sqrt(gx * gx + gy * gy)
    edges = np.where(magnitude > threshold, 0, 255).astype(np.uint8)

    interior = buffer.data[1:height - 1, 1:width - 1]
    interior[..., 0] = edges
    interior[..., 1] = edges
    interior[..., 2] = edges
    interior[..., 3] = 255
    return buffer


def adjust_brightness_contrast(
    buffer: PixelBuffer, contrast: int = 50, brightness: int = 50
) -> PixelBuffer:
    """Contrast around mid-gray, then brightness offset. 50/50 is identity."""
    factor = (contrast - 50) / 50 + 1  # 0 to 2
    offset = (brightness - 50) * 2.55  # -127.5 to 127.5
    rgb = buffer.data[..., :3].astype(np.float64)
    buffer.data[..., :3] = _to_uint8((rgb - 128) * factor + 128 + offset)
    return buffer


def enhance_curve(buffer: PixelBuffer, intensity: int) -> PixelBuffer:
    """Gamma-style level curve; higher intensity lifts the midtones."""
    factor = 1 + (intensity - 50) / 100
    values = 255 * np.power(_gray(buffer) / 255, 1 / factor)
    return _store_gray(buffer, values)


def add_noise(
    buffer: PixelBuffer, amount: float, rng: np.random.Generator | None = None
) -> PixelBuffer:
    """Add uniform noise in [-amount/2, amount/2) to the gray value."""
    if rng is None:
        rng = np.random.default_rng()
    noise = (rng.random((buffer.height, buffer.width)) - 0.5) * amount
    return _store_gray(buffer, _gray(buffer) + noise)


def threshold(buffer: PixelBuffer, level: float) -> PixelBuffer:
    """Hard black/white cut: gray above ``level`` becomes 255, the rest 0."""
    return _store_gray(buffer, np.where(_gray(buffer) > level, 255, 0))


def multiply_blend(base: PixelBuffer, overlay: PixelBuffer) -> PixelBuffer:
    _check_shapes(base, overlay, "multiply blend")
    return _store_gray(base, _gray(base) * _gray(overlay) / 255)


def weighted_blend(
    base: PixelBuffer,
    overlay: PixelBuffer,
    base_weight: float,
    overlay_weight: float,
) -> PixelBuffer:
    """Linear mix of two gray buffers; the result overwrites ``base``."""
    _check_shapes(base, overlay, "weighted blend")
    return _store_gray(base, _gray(base) * base_weight + _gray(overlay) * overlay_weight)
