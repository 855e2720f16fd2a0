"""Path management module for achievement-sync."""

from .file_watcher import DebounceWorker, WatchHandle, is_achievement_event
from .path_manager import PathManager
from .path_resolver import expand_path

__all__ = [
    "PathManager",
    "WatchHandle",
    "DebounceWorker",
    "is_achievement_event",
    "expand_path",
]
