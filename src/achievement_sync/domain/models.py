from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DirectoryConfig:
    path: str
    name: str
    enabled: bool = True
    is_default: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "enabled": self.enabled,
            "is_default": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DirectoryConfig:
        return cls(
            path=str(data["path"]),
            name=str(data["name"]),
            enabled=bool(data["enabled"]),
            is_default=bool(data["is_default"]),
        )


@dataclass(frozen=True)
class AchievementEntry:
    name: str
    achieved: bool
    # 0 means the loader never recorded a time
    unlock_time: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "achieved": self.achieved,
            "unlockTime": self.unlock_time,
        }


@dataclass(frozen=True)
class GameAchievements:
    game_id: str
    achievements: list[AchievementEntry]
    last_modified: int
    directory: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameId": self.game_id,
            "achievements": [a.to_dict() for a in self.achievements],
            "lastModified": self.last_modified,
            "directory": self.directory,
        }


@dataclass
class CachedGame:
    name: str | None = None
    achievements_total: int | None = None
    rarity: dict[str, float] | None = None
    hidden: list[str] | None = None
    last_updated: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "achievements_total": self.achievements_total,
            "rarity": self.rarity,
            "hidden": self.hidden,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CachedGame:
        """Build a record from its persisted form.

        ``last_updated`` is mandatory; the optional fields default to None.
        Raises KeyError/TypeError/ValueError on malformed input.
        """
        total = data.get("achievements_total")
        rarity = data.get("rarity")
        hidden = data.get("hidden")
        return cls(
            name=data.get("name"),
            achievements_total=int(total) if total is not None else None,
            rarity=(
                {str(k): float(v) for k, v in rarity.items()}
                if rarity is not None
                else None
            ),
            hidden=[str(h) for h in hidden] if hidden is not None else None,
            last_updated=int(data["last_updated"]),
        )


@dataclass
class AppCache:
    games: dict[str, CachedGame] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"games": {gid: g.to_dict() for gid, g in self.games.items()}}
