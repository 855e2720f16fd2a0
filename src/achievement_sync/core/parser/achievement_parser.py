"""
Achievement save-file parsing.

Turns a monitored root into per-game snapshots. Each game lives in its own
subdirectory named after the game id and carries one of:

- ``achievements.ini``  classic ``[Name]`` / ``Achieved=`` / ``UnlockTime=`` blocks
- ``achievements.json`` multi-runtime ``{"Name": {"earned": .., "earned_time": ..}}``
- ``Stats/achievements.ini`` when the root is an OnlineFix root
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from achievement_sync.core.paths.path_resolver import expand_path
from achievement_sync.domain.models import AchievementEntry, GameAchievements
from achievement_sync.utils.constants import (
    ACHIEVEMENT_INI,
    ACHIEVEMENT_JSON,
    ONLINEFIX_ROOT_NAME,
    ONLINEFIX_STATS_DIR,
)

log = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
_TIMESTAMP_RE = re.compile(r"[+-]?[0-9]+")


def _in_int64(value: int) -> bool:
    return INT64_MIN <= value <= INT64_MAX


def parse_timestamp(value: str) -> int:
    """Parse a signed 64-bit decimal timestamp; anything else is 0."""
    if not _TIMESTAMP_RE.fullmatch(value):
        return 0
    number = int(value)
    return number if _in_int64(number) else 0


class AchievementParseError(ValueError):
    """Raised when an achievement file does not follow its schema."""


class AchievementParser:
    """Stateless parser for the supported achievement layouts."""

    @staticmethod
    def parse_achievement_file(file_path: Path) -> list[AchievementEntry]:
        """
        Parse a single achievement file, dispatching on its extension.

        Args:
            file_path: Path to an achievements.ini or achievements.json file

        Returns:
            Entries in file order

        Raises:
            OSError: If the file cannot be read
            UnicodeDecodeError: If the file is not valid UTF-8
            AchievementParseError: If a JSON file has the wrong shape
        """
        file_path = Path(file_path)
        with open(file_path, "r", encoding="utf-8-sig") as f:
            content = f.read()

        if file_path.suffix.lower() == ".json":
            return AchievementParser.parse_json(content, file_path)
        return AchievementParser.parse_ini(content)

    @staticmethod
    def parse_ini(content: str) -> list[AchievementEntry]:
        achievements: list[AchievementEntry] = []
        current: dict | None = None

        for raw_line in content.splitlines():
            line = raw_line.strip()

            if line.startswith("[") and line.endswith("]"):
                if current is not None:
                    achievements.append(AchievementEntry(**current))
                current = {"name": line[1:-1], "achieved": False, "unlock_time": 0}
            elif "=" in line and current is not None:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                if key == "Achieved":
                    current["achieved"] = value == "1"
                elif key == "UnlockTime":
                    current["unlock_time"] = parse_timestamp(value)

        if current is not None:
            achievements.append(AchievementEntry(**current))

        return achievements

    @staticmethod
    def parse_json(content: str, file_path: Path | None = None) -> list[AchievementEntry]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise AchievementParseError(f"Failed to parse JSON: {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise AchievementParseError(
                f"Invalid achievements JSON format: {file_path}"
            )

        achievements: list[AchievementEntry] = []
        for name, payload in data.items():
            if not isinstance(payload, dict):
                continue

            earned = payload.get("earned")
            earned_time = payload.get("earned_time")
            # bool is an int subclass; a boolean earned_time is not a timestamp
            if (
                not isinstance(earned_time, int)
                or isinstance(earned_time, bool)
                or not _in_int64(earned_time)
            ):
                earned_time = 0

            achievements.append(
                AchievementEntry(
                    name=str(name),
                    achieved=earned if isinstance(earned, bool) else False,
                    unlock_time=earned_time,
                )
            )

        return achievements

    @staticmethod
    def resolve_achievement_file(root: Path, game_dir: Path) -> Path | None:
        """
        Pick the achievement file for one game directory.

        OnlineFix roots only accept ``Stats/achievements.ini``; every other
        root prefers ``achievements.ini`` over ``achievements.json``.
        """
        if root.name == ONLINEFIX_ROOT_NAME:
            onlinefix_ini = game_dir / ONLINEFIX_STATS_DIR / ACHIEVEMENT_INI
            return onlinefix_ini if onlinefix_ini.exists() else None

        ini_file = game_dir / ACHIEVEMENT_INI
        if ini_file.exists():
            return ini_file
        json_file = game_dir / ACHIEVEMENT_JSON
        if json_file.exists():
            return json_file
        return None

    @staticmethod
    def _file_mtime(file_path: Path) -> int:
        try:
            return int(file_path.stat().st_mtime)
        except OSError:
            return 0

    @staticmethod
    def parse_directory(directory_path: Path) -> list[GameAchievements]:
        """
        Scan one root and return a snapshot per game with at least one entry.

        Args:
            directory_path: Root holding one subdirectory per game id

        Returns:
            List of GameAchievements (empty if the root does not exist)

        Raises:
            OSError: If the root exists but cannot be listed
        """
        directory_path = Path(directory_path)
        games: list[GameAchievements] = []

        if not directory_path.exists():
            log.warning("Scan directory does not exist: %s", directory_path)
            return games
        log.info("Scanning directory: %s", directory_path)

        for entry in directory_path.iterdir():
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                continue

            game_id = entry.name
            achievement_file = AchievementParser.resolve_achievement_file(
                directory_path, entry
            )
            if achievement_file is None:
                continue

            log.debug("Processing game: %s (File: %s)", game_id, achievement_file)
            try:
                achievements = AchievementParser.parse_achievement_file(
                    achievement_file
                )
            except (OSError, ValueError) as e:
                log.error("Error parsing achievement file %s: %s", achievement_file, e)
                continue

            if not achievements:
                continue

            log.debug("Found %d achievements for game %s", len(achievements), game_id)
            games.append(
                GameAchievements(
                    game_id=game_id,
                    achievements=achievements,
                    last_modified=AchievementParser._file_mtime(achievement_file),
                    directory=str(directory_path),
                )
            )

        log.info(
            "Scan finished for directory '%s'. Found %d valid entries.",
            directory_path,
            len(games),
        )
        return games

    @staticmethod
    def parse_directories(directory_paths: list[str]) -> list[GameAchievements]:
        """
        Scan several roots and concatenate their snapshots.

        Game ids are not deduplicated across roots.
        """
        all_games: list[GameAchievements] = []

        for dir_path in directory_paths:
            expanded = expand_path(dir_path)
            try:
                all_games.extend(AchievementParser.parse_directory(expanded))
            except OSError as e:
                log.error("Error parsing directory %s: %s", expanded, e)

        return all_games

    @staticmethod
    def get_achievement_file_last_modified(game_id: str, path: str) -> int | None:
        """
        Get the modification time of a game's achievement file.

        Args:
            game_id: Game directory name
            path: Monitored root (``steam://`` pseudo-roots have no file)

        Returns:
            Epoch seconds, or None when no achievement file exists
        """
        if path.startswith("steam://"):
            return None

        game_dir = expand_path(path) / game_id
        ini_path = game_dir / ACHIEVEMENT_INI
        target = ini_path if ini_path.exists() else game_dir / ACHIEVEMENT_JSON
        if not target.exists():
            return None

        try:
            return int(target.stat().st_mtime)
        except OSError as e:
            log.warning("Could not stat %s: %s", target, e)
            return None
