"""
Persistent metadata cache for games seen by the monitor.

Stores slow-to-fetch metadata (display name, achievement count, rarity,
hidden achievement names) in a single JSON document so lookups can be
skipped or served offline:

  {"games": {"<id>": {"name": .., "achievements_total": .., "rarity": ..,
                      "hidden": .., "last_updated": <epoch seconds>}}}

The document is size-bounded: once its compact serialization grows past the
budget, the oldest fifth of the entries is dropped.
"""

from __future__ import annotations

import copy
import json
import logging
import math
import os
import stat
import tempfile
import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING

from achievement_sync.domain.models import AppCache, CachedGame
from achievement_sync.utils.constants import CACHE_EVICTION_RATIO, MAX_CACHE_SIZE

if TYPE_CHECKING:
    from achievement_sync.core.settings import SettingsManager

log = logging.getLogger(__name__)


def format_size(num_bytes: int) -> str:
    """Human readable size as shown in the settings screen."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"


class CacheManager:
    """
    Owns the cache document at ``cache_file``.

    All read-modify-write cycles of one manager are serialized by an
    internal lock. Writers in other processes are not coordinated with;
    the last write wins.
    """

    def __init__(
        self,
        cache_file: Path,
        settings_manager: SettingsManager | None = None,
        *,
        max_size: int = MAX_CACHE_SIZE,
    ):
        """
        Initialize the cache manager.

        Args:
            cache_file: Path to the JSON cache document
            settings_manager: Optional settings source for the ``enableCache`` flag
            max_size: Serialized size budget in bytes
        """
        self.cache_file = Path(cache_file)
        self.settings_manager = settings_manager
        self.max_size = max_size
        self._lock = threading.Lock()

    def is_enabled(self) -> bool:
        if self.settings_manager is None:
            return True
        return self.settings_manager.cache_enabled

    def load(self) -> AppCache:
        """
        Read the persisted document.

        Returns:
            The cache, or an empty one if the file is missing or unparsable
        """
        if not self.cache_file.exists():
            return AppCache()

        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                raw = json.load(f)
            games = {
                str(game_id): CachedGame.from_dict(data)
                for game_id, data in raw["games"].items()
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            log.warning("Discarding unreadable cache %s: %s", self.cache_file, e)
            return AppCache()

        return AppCache(games=games)

    def save(self, cache: AppCache) -> None:
        """Write the whole document, replacing the previous one atomically."""
        self.cache_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=".cache-", suffix=".tmp", dir=self.cache_file.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(cache.to_dict(), f, indent=2, ensure_ascii=False)
            if self.cache_file.exists():
                # mkstemp creates 0600; keep the mode the document already had
                os.chmod(tmp_path, stat.S_IMODE(self.cache_file.stat().st_mode))
            tmp_path.replace(self.cache_file)
        except OSError as e:
            log.error("Failed to save cache %s: %s", self.cache_file, e)
            tmp_path.unlink(missing_ok=True)
            raise

    @staticmethod
    def serialized_size(cache: AppCache) -> int:
        """Byte length of the compact serialization used for the budget check."""
        content = json.dumps(cache.to_dict(), separators=(",", ":"), ensure_ascii=False)
        return len(content.encode("utf-8"))

    def _evict_if_needed(self, cache: AppCache) -> None:
        size = self.serialized_size(cache)
        if size <= self.max_size:
            return

        log.info("Cache size exceeded (%d bytes), evicting old entries...", size)
        entries = sorted(cache.games.items(), key=lambda item: item[1].last_updated)
        remove_count = math.ceil(len(entries) * CACHE_EVICTION_RATIO)

        # Never empty the cache outright
        if remove_count > 0 and len(entries) > remove_count:
            cache.games = dict(entries[remove_count:])
            log.debug("Evicted %d cache entries", remove_count)

    def get(self, game_id: str) -> CachedGame | None:
        """
        Get a copy of the cached record for a game.

        Returns:
            The record, or None if absent or caching is disabled
        """
        if not self.is_enabled():
            return None

        game = self.load().games.get(game_id)
        return copy.deepcopy(game) if game is not None else None

    def update(
        self,
        game_id: str,
        name: str | None = None,
        total: int | None = None,
        rarity: dict[str, float] | None = None,
        hidden: list[str] | None = None,
    ) -> None:
        """
        Merge the supplied fields into a game's record and persist.

        Fields left as None keep their stored value. Does nothing when
        caching is disabled.
        """
        if not self.is_enabled():
            return

        with self._lock:
            cache = self.load()
            entry = cache.games.setdefault(game_id, CachedGame())

            if name is not None:
                entry.name = name
            if total is not None:
                entry.achievements_total = total
            if rarity is not None:
                entry.rarity = dict(rarity)
            if hidden is not None:
                entry.hidden = list(hidden)
            entry.last_updated = int(time.time())

            self._evict_if_needed(cache)
            self.save(cache)

    def size(self) -> int:
        """
        Get the size of the persisted document.

        Returns:
            Size in bytes, 0 if there is no document
        """
        try:
            return self.cache_file.stat().st_size
        except FileNotFoundError:
            return 0

    def clear(self) -> None:
        """Delete the persisted document."""
        with self._lock:
            if self.cache_file.exists():
                self.cache_file.unlink()
                log.info("Cleared cache %s", self.cache_file)
