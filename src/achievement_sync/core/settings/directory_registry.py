"""
Directory registry for the monitored achievement roots.
Builds the default loader roots and merges them with persisted configs.
"""

import logging
import sys
from pathlib import Path

from achievement_sync.core.paths.path_resolver import expand_path
from achievement_sync.domain.models import DirectoryConfig

log = logging.getLogger(__name__)


class DirectoryRegistry:
    """Knows where the supported loaders write their achievement files."""

    # Windows-style default roots; relocated under a Wine prefix elsewhere
    DEFAULT_ROOTS = [
        "C:/Users/Public/Documents/Steam/RUNE",
        "C:/Users/Public/Documents/Steam/CODEX",
        "C:/ProgramData/Steam/RLD!",
        "C:/Users/Public/Documents/OnlineFix",
    ]

    GSE_ROOT_TEMPLATE = "C:/users/{user}/AppData/Roaming/GSE Saves"

    DEFAULT_WINE_PREFIX = "~/.wine"

    FALLBACK_USER = "steamuser"

    @staticmethod
    def _root_name(path: str) -> str:
        return path.rstrip("/").split("/")[-1] or "Unknown"

    @classmethod
    def resolve_gse_user(cls, users_roots: list[Path]) -> str:
        """
        Find the account that owns a ``GSE Saves`` directory.

        Any account other than ``steamuser`` wins; ``steamuser`` is the
        fallback whether or not it was seen.
        """
        for root in users_roots:
            if not root.exists():
                continue
            try:
                entries = sorted(root.iterdir())
            except OSError as e:
                log.warning("Could not list users directory %s: %s", root, e)
                continue

            for entry in entries:
                if not entry.is_dir():
                    continue
                gse_dir = entry / "AppData" / "Roaming" / "GSE Saves"
                if not gse_dir.exists():
                    continue
                if entry.name.lower() != cls.FALLBACK_USER:
                    return entry.name

        return cls.FALLBACK_USER

    @staticmethod
    def wine_drive_c(wine_prefix: str | None) -> Path:
        """Resolve a Wine prefix (or its drive_c) to the drive_c directory."""
        prefix_raw = (wine_prefix or "").strip() or DirectoryRegistry.DEFAULT_WINE_PREFIX
        expanded = expand_path(prefix_raw)
        if expanded.name == "drive_c":
            return expanded
        return expanded / "drive_c"

    @classmethod
    def build_default_directories(
        cls, wine_prefix: str | None = None, platform: str | None = None
    ) -> list[DirectoryConfig]:
        """
        Build the default monitored roots for a platform.

        Args:
            wine_prefix: Wine prefix used outside Windows (default ``~/.wine``)
            platform: Platform string (defaults to sys.platform)

        Returns:
            List of enabled default DirectoryConfig entries
        """
        platform = platform or sys.platform

        if platform == "win32":
            gse_user = cls.resolve_gse_user([Path("C:/users"), Path("C:/Users")])
            roots = cls.DEFAULT_ROOTS + [cls.GSE_ROOT_TEMPLATE.format(user=gse_user)]
            return [
                DirectoryConfig(
                    path=p, name=cls._root_name(p), enabled=True, is_default=True
                )
                for p in roots
            ]

        drive_c = cls.wine_drive_c(wine_prefix)
        gse_user = cls.resolve_gse_user([drive_c / "users", drive_c / "Users"])
        roots = cls.DEFAULT_ROOTS + [cls.GSE_ROOT_TEMPLATE.format(user=gse_user)]

        configs = []
        for p in roots:
            suffix = p[3:] if p.startswith("C:/") else p
            configs.append(
                DirectoryConfig(
                    path=str(drive_c / suffix),
                    name=cls._root_name(p),
                    enabled=True,
                    is_default=True,
                )
            )
        return configs

    @staticmethod
    def load_saved(raw_configs) -> list[DirectoryConfig]:
        """Decode persisted ``monitoredConfigs``, skipping malformed items."""
        saved: list[DirectoryConfig] = []
        if not isinstance(raw_configs, list):
            return saved
        for item in raw_configs:
            try:
                saved.append(DirectoryConfig.from_dict(item))
            except (KeyError, TypeError) as e:
                log.warning("Skipping malformed monitored directory %r: %s", item, e)
        return saved

    @staticmethod
    def merge_saved(
        defaults: list[DirectoryConfig],
        saved: list[DirectoryConfig],
        platform: str | None = None,
    ) -> list[DirectoryConfig]:
        """
        Merge persisted configs into the defaults.

        Saved entries matching a default path only carry over ``enabled``;
        unmatched custom entries are appended; unmatched saved defaults
        (from an older prefix, say) are dropped.
        """
        platform = platform or sys.platform
        merged = [
            DirectoryConfig(d.path, d.name, d.enabled, d.is_default) for d in defaults
        ]

        for config in saved:
            path = config.path
            if platform == "win32" and ".wine/drive_c" in path:
                idx = path.find("drive_c/")
                if idx != -1:
                    path = "C:/" + path[idx + len("drive_c/") :]
                    log.info("Rewrote legacy Wine path %s -> %s", config.path, path)

            existing = next((m for m in merged if m.path == path), None)
            if existing is not None:
                existing.enabled = config.enabled
            elif not config.is_default:
                merged.append(
                    DirectoryConfig(path, config.name, config.enabled, False)
                )

        return merged
