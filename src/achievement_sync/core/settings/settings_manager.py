"""
Settings manager for handling persistent application settings.
Manages JSON-based configuration storage (settings.json).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

log = logging.getLogger(__name__)


class SettingsManager:
    """Manages loading and saving of application settings to JSON file."""

    def __init__(self, settings_file: Path):
        """
        Initialize the settings manager.

        Args:
            settings_file: Path to the JSON settings file
        """
        self.settings_file = Path(settings_file)
        self._settings_cache: Dict[str, Any] = {}
        self._ensure_settings_directory()
        self.load_settings()

    def _ensure_settings_directory(self):
        """Ensure the settings directory exists."""
        self.settings_file.parent.mkdir(parents=True, exist_ok=True)

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from the JSON file.

        Keys missing from the file are filled from the defaults.

        Returns:
            Dictionary containing all settings
        """
        self._settings_cache = self._get_default_settings()
        if not self.settings_file.exists():
            return self._settings_cache

        try:
            with open(self.settings_file, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            log.error("Error loading settings from %s: %s", self.settings_file, e)
            return self._settings_cache

        if isinstance(loaded, dict):
            self._settings_cache.update(loaded)
        else:
            log.error("Ignoring non-object settings file %s", self.settings_file)

        return self._settings_cache

    def save_settings(self) -> bool:
        """
        Save current settings to the JSON file.

        Returns:
            True if successful, False otherwise
        """
        try:
            with open(self.settings_file, "w", encoding="utf-8") as f:
                json.dump(self._settings_cache, f, indent=2)
            return True
        except IOError as e:
            log.error("Error saving settings to %s: %s", self.settings_file, e)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.

        Args:
            key: Setting key
            default: Default value if key doesn't exist

        Returns:
            Setting value or default
        """
        return self._settings_cache.get(key, default)

    def set(self, key: str, value: Any, auto_save: bool = True) -> None:
        """
        Set a setting value.

        Args:
            key: Setting key
            value: Setting value
            auto_save: Whether to automatically save to file
        """
        self._settings_cache[key] = value
        if auto_save:
            self.save_settings()

    def update(self, settings: Dict[str, Any], auto_save: bool = True) -> None:
        """
        Update multiple settings at once.

        Args:
            settings: Dictionary of settings to update
            auto_save: Whether to automatically save to file
        """
        self._settings_cache.update(settings)
        if auto_save:
            self.save_settings()

    @property
    def cache_enabled(self) -> bool:
        return bool(self.get("enableCache", True))

    def _get_default_settings(self) -> Dict[str, Any]:
        """
        Get default settings structure.

        Returns:
            Dictionary with default settings
        """
        return {
            "monitoredConfigs": [],
            "enableCache": True,
            "winePrefixPath": None,
        }
