"""RGBA pixel buffer shared by every filter in the pipeline.

AIDEV-NOTE: A PixelBuffer owns one (height, width, 4) uint8 array. Filters
that mutate take the buffer and return it; anything that needs an untouched
reference must call copy() first.
"""

from __future__ import annotations

import numpy as np
from PIL import Image


class PixelBuffer:
    """Fixed-size RGBA grid, 8 bits per channel, row-major."""

    __slots__ = ("_data",)

    def __init__(self, data: np.ndarray):
        data = np.asarray(data)
        if data.dtype != np.uint8:
            data = np.clip(np.rint(data), 0, 255).astype(np.uint8)
        if data.ndim == 2:
            data = np.stack([data, data, data], axis=-1)
        if data.ndim != 3 or data.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3|4) pixel array, got {data.shape}")
        if data.shape[2] == 3:
            alpha = np.full(data.shape[:2] + (1,), 255, dtype=np.uint8)
            data = np.concatenate([data, alpha], axis=-1)
        self._data = np.ascontiguousarray(data)

    @classmethod
    def blank(cls, width: int, height: int, value: int = 255) -> "PixelBuffer":
        """Create an opaque buffer filled with a single gray value."""
        data = np.full((height, width, 4), value, dtype=np.uint8)
        data[..., 3] = 255
        return cls(data)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self._data.copy())

    @property
    def data(self) -> np.ndarray:
        """The underlying array. Writes go straight into the buffer."""
        return self._data

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def size(self) -> "tuple[int, int]":
        return self.width, self.height

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self._data.copy())

    def same_shape(self, other: "PixelBuffer") -> bool:
        return self._data.shape == other._data.shape

    def __eq__(self, other):
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.same_shape(other) and bool(np.array_equal(self._data, other._data))

    __hash__ = None

    def __repr__(self):
        return f"PixelBuffer({self.width}x{self.height})"
