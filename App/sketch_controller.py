"""Event-loop front end for the sketch processor.

AIDEV-NOTE: The controller is the only thing a host UI talks to. All work
runs on the thread that owns the Qt event loop. Parameter changes are
coalesced onto one render-clock tick; the tick always uses the latest
settings, so stale requests are simply dropped.
"""

import logging

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from image_processing import SketchProcessor
from models import (
    REGENERATE_INTERVAL_MS,
    DecodeError,
    ExportedSketch,
    ImageDimensions,
    SketchConfig,
    ValidationError,
)

logger = logging.getLogger(__name__)


class SketchController(QObject):
    """Owns a SketchProcessor and schedules regeneration on the event loop."""

    sketch_ready = pyqtSignal(object)  # PixelBuffer
    image_loaded = pyqtSignal(object)  # ImageDimensions
    image_cleared = pyqtSignal()
    load_failed = pyqtSignal(str)  # Error message
    settings_changed = pyqtSignal(object)  # SketchConfig

    def __init__(
        self,
        processor: SketchProcessor | None = None,
        interval_ms: int = REGENERATE_INTERVAL_MS,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.processor = processor or SketchProcessor()
        self.generation_count = 0

        self._regen_timer = QTimer(self)
        self._regen_timer.setSingleShot(True)
        self._regen_timer.setInterval(interval_ms)
        self._regen_timer.timeout.connect(self._regenerate)

    # -------------------------------------------------------------
    # Image lifecycle
    # -------------------------------------------------------------

    def load_image(
        self, data: bytes, mime_type: str, name: str | None = None
    ) -> ImageDimensions | None:
        """Load an upload; failures are reported through ``load_failed``."""
        try:
            dimensions = self.processor.load_image(data, mime_type, name=name)
        except (ValidationError, DecodeError) as e:
            logger.warning("Image load failed: %s", e)
            self.load_failed.emit(str(e))
            return None

        self._regen_timer.stop()
        self._publish()
        self.image_loaded.emit(dimensions)
        return dimensions

    def clear(self) -> None:
        self._regen_timer.stop()
        self.processor.clear()
        self.image_cleared.emit()

    def has_image(self) -> bool:
        return self.processor.has_image()

    def image_dimensions(self) -> ImageDimensions | None:
        return self.processor.get_image_dimensions()

    # -------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------

    def settings(self) -> SketchConfig:
        return self.processor.get_settings()

    def update_setting(self, key: str, value) -> None:
        self.processor.update_setting(key, value)
        self.settings_changed.emit(self.processor.get_settings())
        self.request_regeneration()

    def apply_preset(self, name: str) -> SketchConfig | None:
        settings = self.processor.apply_preset(name)
        if settings is None:
            return None
        self.settings_changed.emit(settings)
        self.request_regeneration()
        return settings

    def reset(self) -> SketchConfig:
        self._regen_timer.stop()
        settings = self.processor.reset()
        self.settings_changed.emit(settings)
        if self.processor.has_image():
            self._publish()
        return settings

    # -------------------------------------------------------------
    # Regeneration
    # -------------------------------------------------------------

    @property
    def regeneration_pending(self) -> bool:
        return self._regen_timer.isActive()

    def request_regeneration(self) -> None:
        """Schedule a regeneration on the next render tick.

        Requests made while one is already pending are merged into it.
        """
        if not self.processor.has_image():
            return
        if not self._regen_timer.isActive():
            self._regen_timer.start()

    def regenerate_now(self):
        """Cancel any pending tick and regenerate immediately."""
        self._regen_timer.stop()
        return self._regenerate()

    def _regenerate(self):
        sketch = self.processor.generate_sketch()
        if sketch is None:
            return None
        self._publish()
        return sketch

    def _publish(self) -> None:
        self.generation_count += 1
        self.sketch_ready.emit(self.processor.sketch)

    # -------------------------------------------------------------
    # Export
    # -------------------------------------------------------------

    def export(self, base_name: str | None = None, fmt: str = "png") -> ExportedSketch:
        if self._regen_timer.isActive():
            # Never export a sketch that lags behind the settings
            self.regenerate_now()
        return self.processor.export(base_name, fmt)
