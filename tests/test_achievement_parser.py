"""Tests for the achievement file parser."""

import os
from pathlib import Path

import pytest
from conftest import INI_TWO_ENTRIES, JSON_TWO_ENTRIES, write_game_file

from achievement_sync.core.parser import AchievementParseError, AchievementParser
from achievement_sync.core.paths.path_resolver import expand_path
from achievement_sync.domain.models import AchievementEntry


class TestExpandPath:
    """Test home shorthand expansion."""

    def test_expands_home_prefix(self, fake_home: Path) -> None:
        assert expand_path("~/saves/RUNE") == fake_home / "saves" / "RUNE"

    def test_other_paths_unchanged(self) -> None:
        assert expand_path("/opt/saves") == Path("/opt/saves")
        assert expand_path("relative/~/dir") == Path("relative/~/dir")
        assert expand_path("~user/dir") == Path("~user/dir")


class TestParseIni:
    """Test the classic INI schema."""

    def test_two_sections(self) -> None:
        entries = AchievementParser.parse_ini(INI_TWO_ENTRIES)
        assert entries == [
            AchievementEntry("A", True, 1700000000),
            AchievementEntry("B", False, 0),
        ]

    def test_only_literal_one_means_achieved(self) -> None:
        content = "[A]\nAchieved=true\n[B]\nAchieved= 1 \n[C]\nAchieved=2\n"
        entries = AchievementParser.parse_ini(content)
        assert [e.achieved for e in entries] == [False, True, False]

    def test_unparsable_or_missing_unlock_time_is_zero(self) -> None:
        content = "[A]\nAchieved=1\nUnlockTime=soon\n[B]\nAchieved=1\n"
        entries = AchievementParser.parse_ini(content)
        assert [e.unlock_time for e in entries] == [0, 0]

    def test_unknown_keys_and_orphan_lines_ignored(self) -> None:
        content = (
            "Achieved=1\n"
            "UnlockTime=99\n"
            "[A]\n"
            "CurProgress=3\n"
            "MaxProgress=10\n"
            "Achieved=1\n"
            "just some text\n"
        )
        entries = AchievementParser.parse_ini(content)
        assert entries == [AchievementEntry("A", True, 0)]

    def test_header_without_keys_still_counts(self) -> None:
        entries = AchievementParser.parse_ini("[A]\n\n\n[B]\n")
        assert [e.name for e in entries] == ["A", "B"]
        assert not any(e.achieved for e in entries)

    def test_value_split_on_first_equals(self) -> None:
        entries = AchievementParser.parse_ini("[A]\nUnlockTime=12=34\n[B]\n UnlockTime = 7 \n")
        assert [e.unlock_time for e in entries] == [0, 7]

    def test_unlock_time_accepts_only_signed_ascii_int64(self) -> None:
        content = (
            "[A]\nUnlockTime=1_700\n"
            "[B]\nUnlockTime=99999999999999999999999\n"
            "[C]\nUnlockTime=\u0663\n"
            "[D]\nUnlockTime=+42\n"
            "[E]\nUnlockTime=-5\n"
            "[F]\nUnlockTime=9223372036854775807\n"
        )
        entries = AchievementParser.parse_ini(content)
        assert [e.unlock_time for e in entries] == [0, 0, 0, 42, -5, 2**63 - 1]

    def test_section_count_matches_headers(self) -> None:
        content = "".join(f"[ACH_{i}]\nAchieved={i % 2}\nUnlockTime={i}\n" for i in range(25))
        entries = AchievementParser.parse_ini(content)
        assert len(entries) == 25
        assert entries[3] == AchievementEntry("ACH_3", True, 3)

    def test_empty_content(self) -> None:
        assert AchievementParser.parse_ini("") == []

    def test_raw_values_are_not_normalized(self) -> None:
        entries = AchievementParser.parse_ini("[A]\nAchieved=0\nUnlockTime=1700000000\n")
        assert entries == [AchievementEntry("A", False, 1700000000)]


class TestParseJson:
    """Test the multi-runtime JSON schema."""

    def test_two_keys(self) -> None:
        entries = AchievementParser.parse_json(JSON_TWO_ENTRIES)
        assert sorted(entries, key=lambda e: e.name) == [
            AchievementEntry("X", True, 5),
            AchievementEntry("Y", False, 0),
        ]

    def test_defaults_for_missing_or_wrong_types(self) -> None:
        content = (
            '{"A": {}, "B": {"earned": 1, "earned_time": "5"},'
            ' "C": {"earned": true, "earned_time": 2.5},'
            ' "D": {"earned_time": true}}'
        )
        entries = {e.name: e for e in AchievementParser.parse_json(content)}
        assert entries["A"] == AchievementEntry("A", False, 0)
        assert entries["B"] == AchievementEntry("B", False, 0)
        assert entries["C"] == AchievementEntry("C", True, 0)
        assert entries["D"] == AchievementEntry("D", False, 0)

    def test_earned_time_outside_int64_is_zero(self) -> None:
        content = (
            '{"A": {"earned": true, "earned_time": 9223372036854775808},'
            ' "B": {"earned": true, "earned_time": -9223372036854775808}}'
        )
        entries = {e.name: e for e in AchievementParser.parse_json(content)}
        assert entries["A"].unlock_time == 0
        assert entries["B"].unlock_time == -(2**63)

    def test_non_object_values_skipped(self) -> None:
        entries = AchievementParser.parse_json('{"A": {"earned": true}, "B": 3}')
        assert [e.name for e in entries] == ["A"]

    def test_non_object_root_is_error(self) -> None:
        with pytest.raises(AchievementParseError, match="Invalid"):
            AchievementParser.parse_json('[{"earned": true}]')

    def test_malformed_json_is_error(self) -> None:
        with pytest.raises(AchievementParseError):
            AchievementParser.parse_json("{not json")


class TestParseDirectory:
    """Test per-root scanning and format resolution."""

    def test_ini_scenario(self, games_root: Path) -> None:
        write_game_file(games_root, "100", "achievements.ini", INI_TWO_ENTRIES)

        games = AchievementParser.parse_directory(games_root)

        assert len(games) == 1
        game = games[0]
        assert game.game_id == "100"
        assert game.directory == str(games_root)
        assert game.achievements == [
            AchievementEntry("A", True, 1700000000),
            AchievementEntry("B", False, 0),
        ]

    def test_json_scenario(self, games_root: Path) -> None:
        write_game_file(games_root, "200", "achievements.json", JSON_TWO_ENTRIES)

        games = AchievementParser.parse_directory(games_root)

        assert [g.game_id for g in games] == ["200"]
        by_name = {a.name: a for a in games[0].achievements}
        assert by_name["X"] == AchievementEntry("X", True, 5)
        assert by_name["Y"] == AchievementEntry("Y", False, 0)

    def test_ini_preferred_over_json(self, games_root: Path) -> None:
        write_game_file(games_root, "300", "achievements.ini", "[FromIni]\nAchieved=1\n")
        write_game_file(games_root, "300", "achievements.json", JSON_TWO_ENTRIES)

        games = AchievementParser.parse_directory(games_root)

        assert [a.name for a in games[0].achievements] == ["FromIni"]

    def test_empty_file_excluded_like_missing_file(self, games_root: Path) -> None:
        write_game_file(games_root, "empty", "achievements.ini", "\n\n")
        write_game_file(games_root, "emptyjson", "achievements.json", "{}")
        (games_root / "nofile").mkdir()
        (games_root / "stray.txt").write_text("ignored")

        assert AchievementParser.parse_directory(games_root) == []

    def test_bad_file_does_not_abort_scan(self, games_root: Path) -> None:
        write_game_file(games_root, "bad", "achievements.json", "[1, 2, 3]")
        write_game_file(games_root, "broken", "achievements.json", "{oops")
        write_game_file(games_root, "binary", "achievements.ini", "")
        (games_root / "binary" / "achievements.ini").write_bytes(b"\xff\xfe[\x00A\x00]")
        write_game_file(games_root, "good", "achievements.ini", INI_TWO_ENTRIES)

        games = AchievementParser.parse_directory(games_root)

        assert [g.game_id for g in games] == ["good"]

    def test_last_modified_is_file_mtime(self, games_root: Path) -> None:
        path = write_game_file(games_root, "100", "achievements.ini", INI_TWO_ENTRIES)
        os.utime(path, (1600000000, 1600000000))

        games = AchievementParser.parse_directory(games_root)

        assert games[0].last_modified == 1600000000

    def test_missing_root_yields_nothing(self, tmp_path: Path) -> None:
        assert AchievementParser.parse_directory(tmp_path / "missing") == []

    def test_onlinefix_requires_stats_ini(self, tmp_path: Path) -> None:
        root = tmp_path / "OnlineFix"
        write_game_file(root, "400", "Stats/achievements.ini", "[OF]\nAchieved=1\nUnlockTime=9\n")
        # A plain file in the game dir is not used for OnlineFix roots
        write_game_file(root, "500", "achievements.ini", INI_TWO_ENTRIES)
        write_game_file(root, "600", "achievements.json", JSON_TWO_ENTRIES)

        games = AchievementParser.parse_directory(root)

        assert [g.game_id for g in games] == ["400"]
        assert games[0].achievements == [AchievementEntry("OF", True, 9)]

    def test_stats_dir_ignored_for_other_roots(self, games_root: Path) -> None:
        write_game_file(games_root, "400", "Stats/achievements.ini", INI_TWO_ENTRIES)

        assert AchievementParser.parse_directory(games_root) == []


class TestParseDirectories:
    """Test multi-root scanning."""

    def test_concatenates_without_dedup(self, tmp_path: Path) -> None:
        first = tmp_path / "RUNE"
        second = tmp_path / "CODEX"
        write_game_file(first, "100", "achievements.ini", INI_TWO_ENTRIES)
        write_game_file(second, "100", "achievements.ini", INI_TWO_ENTRIES)
        write_game_file(second, "200", "achievements.json", JSON_TWO_ENTRIES)

        games = AchievementParser.parse_directories([str(first), str(second)])

        assert sorted((g.directory, g.game_id) for g in games) == [
            (str(second), "100"),
            (str(second), "200"),
            (str(first), "100"),
        ]

    def test_expands_home_and_skips_missing(self, fake_home: Path) -> None:
        write_game_file(fake_home / "saves", "100", "achievements.ini", INI_TWO_ENTRIES)

        games = AchievementParser.parse_directories(["~/saves", "~/nothing-here"])

        assert [g.game_id for g in games] == ["100"]
        assert games[0].directory == str(fake_home / "saves")


class TestLastModifiedLookup:
    """Test the per-game last-modified lookup."""

    def test_prefers_ini(self, games_root: Path) -> None:
        ini = write_game_file(games_root, "100", "achievements.ini", INI_TWO_ENTRIES)
        json_file = write_game_file(games_root, "100", "achievements.json", JSON_TWO_ENTRIES)
        os.utime(ini, (1500000000, 1500000000))
        os.utime(json_file, (1600000000, 1600000000))

        result = AchievementParser.get_achievement_file_last_modified("100", str(games_root))

        assert result == 1500000000

    def test_missing_and_steam_paths(self, games_root: Path) -> None:
        assert AchievementParser.get_achievement_file_last_modified("1", str(games_root)) is None
        assert AchievementParser.get_achievement_file_last_modified("1", "steam://1") is None
