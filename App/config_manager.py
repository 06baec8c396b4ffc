"""Application settings persistence for Sketchify.

This module holds the host application's own preferences (theme, export
prefix) in a small JSON-backed store. The sketch pipeline never reads it.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from models import EXPORT_PREFIX, SETTINGS_FILE

logger = logging.getLogger(__name__)

THEMES = ("light", "dark")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "theme": "light",
    "export_prefix": EXPORT_PREFIX,
}

Listener = Callable[[str, Any], None]


class SettingsStore:
    """Key/value settings with change notification and JSON persistence."""

    def __init__(self, settings_path: Path = SETTINGS_FILE):
        """Initialize the settings store.

        Args:
            settings_path: Path to settings file (defaults to ~/.sketchify_settings.json)
        """
        self.settings_path = Path(settings_path)
        self._values: Dict[str, Any] = dict(DEFAULT_SETTINGS)
        self._listeners: List[Listener] = []

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store a value and notify subscribers if it changed."""
        if key in self._values and self._values[key] == value:
            return
        self._values[key] = value
        for listener in list(self._listeners):
            listener(key, value)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def toggle_theme(self) -> str:
        """Switch between light and dark theme, returning the new theme."""
        new_theme = "light" if self.get("theme") == "dark" else "dark"
        self.set("theme", new_theme)
        return new_theme

    def load(self) -> Dict[str, Any]:
        """Load settings from file, keeping defaults for anything missing.

        Returns:
            The current settings as a dict
        """
        try:
            if self.settings_path.exists():
                with open(self.settings_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                for key, default in DEFAULT_SETTINGS.items():
                    self.set(key, data.get(key, default))
                if self._values["theme"] not in THEMES:
                    self.set("theme", DEFAULT_SETTINGS["theme"])
                logger.info("Loaded settings from %s", self.settings_path)
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Could not load settings file: %s", e)

        return dict(self._values)

    def save(self) -> Tuple[bool, Optional[str]]:
        """Save settings to file.

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        try:
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2)
            return True, None
        except (OSError, TypeError) as e:
            return False, str(e)
