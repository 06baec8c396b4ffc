import numpy as np
import pytest

from conftest import random_buffer, uniform_buffer
from image_processing import PixelBuffer, rendering
from image_processing.rendering import (
    COMPOSITORS,
    get_renderer,
    render_charcoal,
    render_detailed_pencil,
    render_ink,
    render_pencil,
)
from models import SketchConfig, SketchStyle


@pytest.mark.parametrize("style", list(SketchStyle))
def test_every_style_keeps_dimensions(style):
    buf = random_buffer(width=31, height=17, seed=1)
    result = get_renderer(style)(buf, SketchConfig(style=style))
    assert result.size == (31, 17)
    assert result.data.dtype == np.uint8


@pytest.mark.parametrize("style", list(SketchStyle))
def test_every_style_outputs_gray(style):
    result = get_renderer(style)(random_buffer(seed=2), SketchConfig(style=style, intensity=70))
    np.testing.assert_array_equal(result.data[..., 0], result.data[..., 1])
    np.testing.assert_array_equal(result.data[..., 0], result.data[..., 2])


def test_renderer_lookup():
    assert set(COMPOSITORS) == set(SketchStyle)
    assert get_renderer(SketchStyle.INK) is render_ink
    assert get_renderer("charcoal") is render_charcoal
    assert get_renderer("detailed") is render_detailed_pencil
    assert get_renderer("watercolor") is render_pencil


def test_pencil_on_flat_image_is_white():
    result = render_pencil(uniform_buffer(12, 12, 90), SketchConfig(intensity=45))
    assert (result.data[..., :3] == 255).all()


def test_pencil_is_deterministic():
    config = SketchConfig(intensity=80)
    first = render_pencil(random_buffer(seed=4), config)
    second = render_pencil(random_buffer(seed=4), config)
    assert first == second


def test_ink_is_pure_black_and_white():
    result = render_ink(random_buffer(seed=5), SketchConfig(style=SketchStyle.INK, intensity=80))
    assert set(np.unique(result.data[..., :3])) <= {0, 255}


def test_charcoal_texture_on_flat_image():
    config = SketchConfig(style=SketchStyle.CHARCOAL, intensity=50)
    result = render_charcoal(uniform_buffer(32, 32, 100), config)

    # 100 * 0.7 * 0.75 + 255 * 0.25 = 116.25, then +/- 7.5 of noise
    interior = result.data[1:-1, 1:-1, 0].astype(int)
    assert interior.min() >= 108
    assert interior.max() <= 124


def test_detailed_pencil_darkens_only_unprocessed_frame_on_flat_image():
    config = SketchConfig(style=SketchStyle.DETAILED_PENCIL, intensity=50)
    result = render_detailed_pencil(uniform_buffer(10, 8, 60), config)

    assert (result.data[1:-1, 1:-1, :3] == 255).all()
    assert (result.data[0, :, :3] == 60).all()
    assert (result.data[:, -1, :3] == 60).all()


def step_buffer(width, height, split, right):
    """Black left part, gray ``right`` from column ``split`` on."""
    rgb = np.zeros((height, width, 3), dtype=np.uint8)
    rgb[:, split:] = right
    return PixelBuffer(rgb)


@pytest.mark.parametrize(
    "intensity, passes", [(0, 1), (14, 1), (29, 1), (30, 2), (50, 3), (100, 6)]
)
def test_pencil_blur_pass_count(monkeypatch, intensity, passes):
    calls = []
    original = rendering.gaussian_blur

    def counting_blur(buffer, radius=1):
        calls.append(radius)
        return original(buffer, radius)

    monkeypatch.setattr(rendering, "gaussian_blur", counting_blur)
    render_pencil(random_buffer(seed=6), SketchConfig(intensity=intensity))
    assert calls == [2] * passes


def test_pencil_step_edge():
    result = render_pencil(step_buffer(8, 8, 4, 200), SketchConfig(intensity=15))

    # Blurred negative across the step is 228, 182, 128, 82 at x = 2..5,
    # which dodges the black side to 0 and the gray side to 255
    np.testing.assert_array_equal(result.data[3, :, 0], [255, 255, 0, 0, 255, 255, 255, 255])


@pytest.mark.parametrize(
    "intensity, row",
    [
        (30, [0, 255, 0, 0, 255, 0]),  # |gx| = 60 > 50
        (10, [0, 255, 255, 255, 255, 0]),  # |gx| = 60 <= 70
    ],
)
def test_ink_edge_threshold_follows_intensity(intensity, row):
    config = SketchConfig(style=SketchStyle.INK, intensity=intensity)
    result = render_ink(step_buffer(6, 6, 3, 15), config)
    np.testing.assert_array_equal(result.data[2, :, 0], row)


@pytest.mark.parametrize(
    "intensity, frame, inside",
    [(80, 255, 255), (70, 0, 255), (0, 0, 0)],
)
def test_ink_cut_level(intensity, frame, inside):
    # Unprocessed frame stays at 100, cut at 255 - 2 * intensity
    config = SketchConfig(style=SketchStyle.INK, intensity=intensity)
    result = render_ink(uniform_buffer(6, 6, 100), config)

    assert (result.data[0, :, 0] == frame).all()
    assert (result.data[1:-1, 1:-1, 0] == inside).all()


def test_detailed_pencil_step_edge():
    config = SketchConfig(style=SketchStyle.DETAILED_PENCIL, intensity=50)
    result = render_detailed_pencil(step_buffer(6, 6, 3, 200), config)

    np.testing.assert_array_equal(result.data[2, :, 0], [0, 255, 0, 0, 255, 200])
    # Frame row: dodge is white there, so the multiply keeps the original gray
    np.testing.assert_array_equal(result.data[0, :, 0], [0, 0, 0, 200, 200, 200])


def test_detailed_pencil_curve_runs_after_multiply():
    config = SketchConfig(style=SketchStyle.DETAILED_PENCIL, intensity=100)
    result = render_detailed_pencil(step_buffer(6, 6, 3, 200), config)

    # 255 * (200 / 255) ** (2 / 3) = 216.87
    assert result.data[2, 5, 0] == 217
    np.testing.assert_array_equal(result.data[2, :5, 0], [0, 255, 0, 0, 255])
