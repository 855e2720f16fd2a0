"""Settings management module for achievement-sync."""

from .directory_registry import DirectoryRegistry
from .settings_manager import SettingsManager

__all__ = ["SettingsManager", "DirectoryRegistry"]
