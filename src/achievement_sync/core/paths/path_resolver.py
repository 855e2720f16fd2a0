from __future__ import annotations

from pathlib import Path


def expand_path(path: str | Path) -> Path:
    """
    Expand a leading home shorthand (``~/``) to an absolute path.

    Anything else is returned unchanged as a Path.
    """
    raw = str(path)
    if raw.startswith("~/"):
        return Path.home() / raw[2:]
    return Path(raw)
