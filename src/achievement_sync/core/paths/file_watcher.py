"""
File system watcher for achievement-sync.

A WatchHandle keeps recursive OS watches over the monitored roots and queues
every raw event. A DebounceWorker thread drains that queue and turns bursts of
achievement-file writes into one delayed rescan.
"""

from __future__ import annotations

import logging
import os
import queue
import time
from typing import Callable

from PySide6.QtCore import QThread, Signal
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from achievement_sync.core.paths.path_resolver import expand_path
from achievement_sync.utils.constants import (
    ACHIEVEMENT_FILE_NAMES,
    DEBOUNCE_SECONDS,
    POLL_INTERVAL_SECONDS,
)

log = logging.getLogger(__name__)

# Queued by WatchHandle.close(); tells the worker its event source is gone
DISCONNECTED = object()

# Access-only event types; every rescan produces these itself
READ_ONLY_EVENT_TYPES = frozenset({"opened", "closed_no_write"})


def is_achievement_event(event: FileSystemEvent) -> bool:
    """Return True if the event touches a file named achievements.ini/.json."""
    if event.is_directory or event.event_type in READ_ONLY_EVENT_TYPES:
        return False
    for raw in (event.src_path, getattr(event, "dest_path", "")):
        if raw and os.path.basename(os.fsdecode(raw)) in ACHIEVEMENT_FILE_NAMES:
            return True
    return False


class _QueueingEventHandler(FileSystemEventHandler):
    """Forwards every watchdog event into a queue."""

    def __init__(self, events: queue.Queue):
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._events.put(event)


class WatchHandle:
    """
    Owns one watchdog observer and the queue its events land in.

    Closing the handle stops the observer and marks the queue as
    disconnected, which ends any DebounceWorker reading from it.
    """

    def __init__(self):
        self.events: queue.Queue = queue.Queue()
        self._handler = _QueueingEventHandler(self.events)
        self._observer = Observer()
        self._observer.daemon = True
        # Started up front so each schedule() fails on its own
        self._observer.start()
        self._watched_dirs: list[str] = []
        self._closed = False

    def watch(self, directory: str) -> bool:
        """
        Add a recursive watch for a directory.

        Args:
            directory: Path to directory (``~/`` is expanded)

        Returns:
            True if the watch was registered
        """
        path = expand_path(directory)
        if not path.is_dir():
            log.warning("Monitoring FAILED - Directory does not exist: %s", path)
            return False

        try:
            self._observer.schedule(self._handler, str(path), recursive=True)
        except OSError as e:
            log.error("Monitoring FAILED for %s: %s", path, e)
            return False

        self._watched_dirs.append(str(path))
        return True

    @property
    def watched_directories(self) -> list[str]:
        return list(self._watched_dirs)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop watching and disconnect the event queue. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            self._observer.stop()
            self._observer.join()
        finally:
            self._watched_dirs.clear()
            self.events.put(DISCONNECTED)

    def __enter__(self) -> WatchHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class DebounceWorker(QThread):
    """
    Coalesces achievement-file events into delayed rescans.

    Emits:
      - update_ready(generation, list[GameAchievements]) after each debounced
        rescan, tagged with the generation the worker was created for
    """

    update_ready = Signal(int, object)

    def __init__(
        self,
        events: queue.Queue,
        scan: Callable[[], list],
        *,
        debounce_s: float = DEBOUNCE_SECONDS,
        poll_s: float = POLL_INTERVAL_SECONDS,
        generation: int = 0,
        parent=None,
    ):
        super().__init__(parent)
        self.generation = generation
        self._events = events
        self._scan = scan
        self._debounce_s = debounce_s
        self._poll_s = poll_s

    def run(self) -> None:
        pending = False
        deadline = 0.0

        while True:
            try:
                item = self._events.get(timeout=self._poll_s)
            except queue.Empty:
                item = None

            if item is DISCONNECTED:
                log.debug("Event source disconnected, stopping debounce loop")
                return

            if item is not None and is_achievement_event(item):
                log.debug("Achievement file event: %s", item.src_path)
                deadline = time.monotonic() + self._debounce_s
                pending = True

            if pending and time.monotonic() >= deadline:
                pending = False
                log.info("Debounce period finished. Refreshing achievement data...")
                try:
                    games = self._scan()
                except Exception:
                    log.exception("Debounced rescan failed")
                    continue
                log.info("Refresh complete (debounced). Found %d games.", len(games))
                self.update_ready.emit(self.generation, games)

