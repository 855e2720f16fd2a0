"""Metadata cache for achievement-sync."""

from .cache_manager import CacheManager, format_size

__all__ = ["CacheManager", "format_size"]
