"""
Application context.

Everything a command needs (settings, cache, monitor) is built once by the
top-level process and handed around explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from achievement_sync.core.cache import CacheManager
from achievement_sync.core.monitor import AchievementMonitor
from achievement_sync.core.paths import PathManager
from achievement_sync.core.settings import DirectoryRegistry, SettingsManager
from achievement_sync.domain.models import DirectoryConfig

log = logging.getLogger(__name__)


@dataclass
class AppContext:
    paths: PathManager
    settings: SettingsManager
    cache: CacheManager
    monitor: AchievementMonitor

    @classmethod
    def create(cls, data_dir: Path | None = None) -> AppContext:
        paths = PathManager(data_dir)
        settings = SettingsManager(paths.settings_file)
        cache = CacheManager(paths.cache_file, settings)
        monitor = AchievementMonitor(initial_directories(settings), settings)
        log.debug("Using data directory %s", paths.data_dir)
        return cls(paths=paths, settings=settings, cache=cache, monitor=monitor)


def initial_directories(settings: SettingsManager) -> list[DirectoryConfig]:
    """Default roots merged with the persisted ``monitoredConfigs``."""
    defaults = DirectoryRegistry.build_default_directories(
        wine_prefix=settings.get("winePrefixPath")
    )
    saved = DirectoryRegistry.load_saved(settings.get("monitoredConfigs", []))
    return DirectoryRegistry.merge_saved(defaults, saved)
