"""Shared fixtures for the test suite."""

import os
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


INI_TWO_ENTRIES = (
    "[A]\nAchieved=1\nUnlockTime=1700000000\n\n[B]\nAchieved=0\nUnlockTime=0\n"
)
JSON_TWO_ENTRIES = (
    '{"X":{"earned":true,"earned_time":5},"Y":{"earned":false,"earned_time":0}}'
)


def write_game_file(root: Path, game_id: str, filename: str, content: str) -> Path:
    """Create <root>/<game_id>/<filename> (filename may contain subdirs)."""
    target = root / game_id / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return target


@pytest.fixture
def games_root(tmp_path: Path) -> Path:
    root = tmp_path / "games"
    root.mkdir()
    return root


@pytest.fixture
def fake_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home
