import io

import numpy as np
import pytest
from PIL import Image

from image_processing import PixelBuffer


def make_image_bytes(width, height, color=None, fmt="PNG"):
    """Encode a solid-color image, or a diagonal gradient when no color is given."""
    if color is None:
        x = np.linspace(0, 255, width)[None, :]
        y = np.linspace(0, 255, height)[:, None]
        rgb = np.stack([np.broadcast_to(x, (height, width)),
                        np.broadcast_to(y, (height, width)),
                        (x + y) / 2 * np.ones((height, width))], axis=-1)
        image = Image.fromarray(rgb.astype(np.uint8))
    else:
        image = Image.new("RGB", (width, height), color)
    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


def random_buffer(width=24, height=18, seed=0):
    rng = np.random.default_rng(seed)
    rgb = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    return PixelBuffer(rgb)


def uniform_buffer(width, height, gray):
    return PixelBuffer.blank(width, height, gray)


@pytest.fixture
def png_bytes():
    return make_image_bytes(40, 30)


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def corrupt_png_bytes(kind="crc"):
    """Valid PNG header followed by a damaged chunk.

    ``crc`` breaks the IHDR checksum, ``chunk`` garbles the type of the
    chunk after IHDR.
    """
    data = bytearray(make_image_bytes(16, 12))
    if kind == "crc":
        data[29:33] = bytes(b ^ 0xFF for b in data[29:33])
    else:
        data[37:41] = b"\x00\x01\x02\x03"
    return bytes(data)
