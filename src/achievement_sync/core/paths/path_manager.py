"""
Path management for achievement-sync.
Resolves the per-user data directory that holds settings and the cache.
"""

import os
import sys
from pathlib import Path

from achievement_sync.utils.constants import (
    APP_DIR_NAME,
    CACHE_FILE_NAME,
    SETTINGS_FILE_NAME,
)


class PathManager:
    """Resolves application data locations."""

    def __init__(self, data_dir: Path | None = None):
        """
        Initialize path manager.

        Args:
            data_dir: Optional explicit data directory (overrides detection)
        """
        self._data_dir = Path(data_dir) if data_dir else self._default_data_dir()

    @staticmethod
    def _default_data_dir() -> Path:
        """Pick the platform-specific data directory."""
        override = os.environ.get("ACHIEVEMENT_SYNC_HOME")
        if override:
            return Path(override)

        if sys.platform == "win32":
            appdata = os.environ.get("APPDATA")
            if appdata:
                return Path(appdata) / APP_DIR_NAME
            return Path.home() / "AppData" / "Roaming" / APP_DIR_NAME

        xdg_config = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config:
            return Path(xdg_config) / APP_DIR_NAME
        return Path.home() / ".config" / APP_DIR_NAME

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def settings_file(self) -> Path:
        """
        Get the path to the settings file.

        Returns:
            Path to settings.json
        """
        return self._data_dir / SETTINGS_FILE_NAME

    @property
    def cache_file(self) -> Path:
        """
        Get the path to the metadata cache document.

        Returns:
            Path to cache.json
        """
        return self._data_dir / CACHE_FILE_NAME
