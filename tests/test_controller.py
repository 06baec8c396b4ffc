import pytest
from PyQt6.QtCore import QEventLoop, QTimer

from conftest import corrupt_png_bytes
from image_processing import SketchProcessor
from models import SketchConfig, SketchStyle
from sketch_controller import SketchController


def wait(ms):
    loop = QEventLoop()
    QTimer.singleShot(ms, loop.quit)
    loop.exec()


@pytest.fixture
def controller(qapp):
    ctrl = SketchController()
    ctrl.ready = []
    ctrl.sketch_ready.connect(ctrl.ready.append)
    return ctrl


def test_load_publishes_first_sketch(controller, png_bytes):
    loaded = []
    controller.image_loaded.connect(loaded.append)

    dims = controller.load_image(png_bytes, "image/png", name="photo.png")

    assert dims.width == 40
    assert loaded == [dims]
    assert len(controller.ready) == 1
    assert controller.ready[0].size == (40, 30)


def test_rapid_changes_coalesce_into_one_regeneration(controller, png_bytes):
    controller.load_image(png_bytes, "image/png")

    for value in (10, 20, 30, 90):
        controller.update_setting("intensity", value)
    assert controller.regeneration_pending

    wait(100)

    assert not controller.regeneration_pending
    assert len(controller.ready) == 2
    expected = SketchProcessor(SketchConfig(intensity=90))
    expected.load_decoded(controller.processor.source.pixels.to_image())
    assert controller.ready[-1] == expected.sketch


def test_requests_without_image_are_dropped(controller):
    controller.update_setting("style", "ink")
    assert not controller.regeneration_pending
    wait(30)
    assert controller.ready == []


def test_load_failure_is_reported(controller, png_bytes):
    failures = []
    controller.load_failed.connect(failures.append)
    controller.load_image(png_bytes, "image/png")

    assert controller.load_image(b"GIF89a", "image/gif") is None
    assert controller.load_image(b"\x89PNG nope", "image/png") is None

    assert len(failures) == 2
    assert "JPG or PNG" in failures[0]
    assert controller.has_image()


def test_presets_and_reset_emit_settings(controller, png_bytes):
    changes = []
    controller.settings_changed.connect(changes.append)
    controller.load_image(png_bytes, "image/png")

    assert controller.apply_preset("missing") is None
    assert changes == []

    controller.apply_preset("charcoal")
    assert changes[-1].style is SketchStyle.CHARCOAL

    settings = controller.reset()
    assert settings == SketchConfig()
    assert changes[-1] == SketchConfig()
    assert not controller.regeneration_pending
    # load + reset, the preset request was superseded
    assert len(controller.ready) == 2


def test_export_flushes_pending_regeneration(controller, png_bytes):
    controller.load_image(png_bytes, "image/png")
    controller.update_setting("invert", True)
    assert controller.regeneration_pending

    exported = controller.export("out")

    assert not controller.regeneration_pending
    assert exported.filename == "out.png"
    assert len(controller.ready) == 2


def test_clear(controller, png_bytes):
    cleared = []
    controller.image_cleared.connect(lambda: cleared.append(True))
    controller.load_image(png_bytes, "image/png")
    controller.update_setting("contrast", 80)

    controller.clear()

    assert cleared == [True]
    assert not controller.has_image()
    assert controller.image_dimensions() is None
    assert not controller.regeneration_pending


def test_damaged_png_is_reported_as_load_failure(controller, png_bytes):
    failures = []
    controller.load_failed.connect(failures.append)
    controller.load_image(png_bytes, "image/png")

    assert controller.load_image(corrupt_png_bytes("chunk"), "image/png") is None
    assert len(failures) == 1
    assert controller.has_image()
