"""Achievement file parsing for achievement-sync."""

from .achievement_parser import AchievementParseError, AchievementParser

__all__ = ["AchievementParser", "AchievementParseError"]
