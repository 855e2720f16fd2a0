"""
Achievement monitor.

Owns the monitored directory list, the watch handle and the debounce worker,
and publishes every fresh snapshot through ``achievements_updated``.
Any change to the directory list rebuilds all watches from scratch.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal, Slot

from achievement_sync.core.parser import AchievementParser
from achievement_sync.core.paths.file_watcher import DebounceWorker, WatchHandle
from achievement_sync.core.paths.path_resolver import expand_path
from achievement_sync.core.settings.directory_registry import DirectoryRegistry
from achievement_sync.domain.models import DirectoryConfig, GameAchievements
from achievement_sync.utils.constants import DEBOUNCE_SECONDS, POLL_INTERVAL_SECONDS

if TYPE_CHECKING:
    from achievement_sync.core.settings import SettingsManager

log = logging.getLogger(__name__)


class AchievementMonitor(QObject):
    """Keeps watches over the enabled roots and emits achievement snapshots."""

    # Emitted with list[GameAchievements] on start and after each debounced rescan
    achievements_updated = Signal(object)

    def __init__(
        self,
        directories: list[DirectoryConfig],
        settings_manager: SettingsManager | None = None,
        *,
        debounce_s: float = DEBOUNCE_SECONDS,
        poll_s: float = POLL_INTERVAL_SECONDS,
        parent=None,
    ):
        """
        Initialize the monitor. Nothing is watched until start().

        Args:
            directories: Initial monitored directory configs
            settings_manager: Optional SettingsManager used to persist mutations
            debounce_s: Quiet period before a rescan
            poll_s: Wake interval of the debounce loop
            parent: Optional parent QObject
        """
        super().__init__(parent)
        self._directories = list(directories)
        self.settings_manager = settings_manager
        self._debounce_s = debounce_s
        self._poll_s = poll_s
        self._lock = threading.RLock()
        self._watch: WatchHandle | None = None
        self._worker: DebounceWorker | None = None
        # Bumped on every teardown; emissions from older workers are dropped
        self._generation = 0

    # Lifecycle

    def start(self) -> None:
        """
        (Re)build all watches, start the debounce loop and emit an initial
        snapshot, even if it is empty.
        """
        with self._lock:
            self._teardown()

            log.info(
                "Starting achievement monitoring for %d directories...",
                len(self._directories),
            )
            handle = WatchHandle()
            for config in self._directories:
                if not config.enabled:
                    log.info("Skipping disabled directory: %s", config.path)
                    continue
                if handle.watch(config.path):
                    log.info("Monitoring active for %s: %s", config.name, config.path)
            self._watch = handle

            paths = self._enabled_paths()
            worker = DebounceWorker(
                handle.events,
                lambda: AchievementParser.parse_directories(paths),
                debounce_s=self._debounce_s,
                poll_s=self._poll_s,
                generation=self._generation,
            )
            worker.update_ready.connect(self._on_worker_update)
            worker.start()
            self._worker = worker

            games = AchievementParser.parse_directories(paths)
            log.info("Initial scan complete. Total games found: %d", len(games))
            self.achievements_updated.emit(games)

    def stop(self) -> None:
        """Release the watches and wait for the debounce loop to exit."""
        with self._lock:
            if self._watch is None and self._worker is None:
                return
            log.info("Stopping achievement monitoring...")
            self._teardown()

    def restart(self) -> None:
        with self._lock:
            self.stop()
            self.start()

    def _teardown(self) -> None:
        self._generation += 1
        # Closing the handle disconnects the queue; the worker exits on next wake
        if self._watch is not None:
            self._watch.close()
            self._watch = None
        if self._worker is not None:
            self._worker.wait()
            self._worker = None

    @Slot(int, object)
    def _on_worker_update(self, generation: int, games: list) -> None:
        # Queued from a worker that may have been replaced since it posted
        if generation != self._generation:
            log.debug("Dropping snapshot from stale monitor generation %d", generation)
            return
        self.achievements_updated.emit(games)

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.isRunning()

    @property
    def watched_directories(self) -> list[str]:
        with self._lock:
            return self._watch.watched_directories if self._watch else []

    # Snapshots

    def _enabled_paths(self) -> list[str]:
        return [d.path for d in self._directories if d.enabled]

    def get_current_snapshot(self) -> list[GameAchievements]:
        """Rescan the enabled directories now, bypassing the debounce loop."""
        with self._lock:
            paths = self._enabled_paths()
        return AchievementParser.parse_directories(paths)

    # Directory list

    def get_directories(self) -> list[DirectoryConfig]:
        with self._lock:
            return [
                DirectoryConfig(d.path, d.name, d.enabled, d.is_default)
                for d in self._directories
            ]

    def set_directories(self, configs: list[DirectoryConfig]) -> None:
        with self._lock:
            self._directories = list(configs)

    def _persist_directories(self, extra: dict | None = None) -> None:
        if self.settings_manager is None:
            return
        values = {"monitoredConfigs": [d.to_dict() for d in self._directories]}
        if extra:
            values.update(extra)
        self.settings_manager.update(values)

    @staticmethod
    def _path_candidates(path: str) -> set[str]:
        return {path, str(expand_path(path))}

    def add_directory(self, path: str) -> list[DirectoryConfig]:
        """
        Start monitoring a custom directory.

        Args:
            path: Directory to add (``~/`` is expanded)

        Returns:
            The resulting directory list
        """
        with self._lock:
            expanded = expand_path(path)
            known = {d.path for d in self._directories}
            if not known & self._path_candidates(path):
                self._directories.append(
                    DirectoryConfig(
                        path=str(expanded),
                        name=expanded.name or "Unknown",
                        enabled=True,
                        is_default=False,
                    )
                )
                self.restart()
                self._persist_directories()
            return self.get_directories()

    def remove_directory(self, path: str) -> list[DirectoryConfig]:
        """Stop monitoring a custom directory. Default roots cannot be removed."""
        with self._lock:
            candidates = self._path_candidates(path)
            for i, config in enumerate(self._directories):
                if config.path in candidates and not config.is_default:
                    del self._directories[i]
                    self.restart()
                    self._persist_directories()
                    break
            return self.get_directories()

    def toggle_directory(self, path: str) -> list[DirectoryConfig]:
        """Flip the enabled flag of a monitored directory."""
        with self._lock:
            candidates = self._path_candidates(path)
            for config in self._directories:
                if config.path in candidates:
                    config.enabled = not config.enabled
                    log.info(
                        "%s monitoring for %s",
                        "Enabled" if config.enabled else "Disabled",
                        config.path,
                    )
                    self.restart()
                    self._persist_directories()
                    break
            return self.get_directories()

    def set_wine_prefix(self, path: str) -> list[DirectoryConfig]:
        """
        Relocate the default roots under a new Wine prefix.

        Default roots keep their enabled flag (matched by name); custom
        directories are kept as they are.

        Raises:
            RuntimeError: If not running on Linux
            ValueError: If the path is empty
        """
        if not sys.platform.startswith("linux"):
            raise RuntimeError("Wine prefix path is only available on Linux")

        trimmed = path.strip()
        if not trimmed:
            raise ValueError("Wine prefix path cannot be empty")

        with self._lock:
            default_enabled = {
                d.name: d.enabled for d in self._directories if d.is_default
            }
            custom = [d for d in self._directories if not d.is_default]

            updated = DirectoryRegistry.build_default_directories(
                wine_prefix=trimmed, platform=sys.platform
            )
            for config in updated:
                if config.name in default_enabled:
                    config.enabled = default_enabled[config.name]

            self._directories = updated + custom
            self.restart()
            self._persist_directories({"winePrefixPath": trimmed})
            return self.get_directories()
