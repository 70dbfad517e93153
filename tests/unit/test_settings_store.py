"""
Unit tests for SessionSettings validation and SettingsStore persistence.

Run: pytest tests/unit/test_settings_store.py -v
"""

import json

import pytest

from src.practice.errors import SettingsError
from src.practice.settings_store import SessionSettings, SettingsStore


class TestSessionSettings:
    """Defaults and clamping."""

    def test_defaults(self):
        settings = SessionSettings()

        assert settings.difficulty == 1
        assert settings.problem_count == 10
        assert settings.time_limit_seconds == 0
        assert settings.max_attempts == 1
        assert settings.adaptive_difficulty_enabled
        assert not settings.compensation_enabled
        assert not settings.auto_continue_enabled
        assert settings.streak_threshold == 10

    def test_out_of_range_values_clamped(self):
        settings = SessionSettings(difficulty=0, problem_count=-3, time_limit_seconds=-5, max_attempts=-1)

        assert settings.difficulty == 1
        assert settings.problem_count == 1
        assert settings.time_limit_seconds == 0
        assert settings.max_attempts == 0

    def test_from_raw_falls_back_per_field(self):
        settings = SessionSettings.from_raw(
            {"difficulty": "abc", "problem_count": 5, "streak_threshold": 0, "colour": "blue"}
        )

        assert settings.difficulty == 1
        assert settings.problem_count == 5
        assert settings.streak_threshold == 10

    def test_from_raw_uses_given_defaults(self):
        defaults = SessionSettings(problem_count=20, max_attempts=3)

        settings = SessionSettings.from_raw({"max_attempts": "oops"}, defaults)

        assert settings.problem_count == 20
        assert settings.max_attempts == 3


class TestSettingsStore:
    """Per-topic JSON files."""

    def test_missing_file_returns_defaults(self, tmp_path):
        defaults = SessionSettings(problem_count=15)
        store = SettingsStore(tmp_path, defaults=defaults)

        assert store.load("fractions") == defaults

    def test_save_and_load(self, tmp_path):
        store = SettingsStore(tmp_path)
        settings = SessionSettings(difficulty=3, max_attempts=0, compensation_enabled=True)

        path = store.save("fractions", settings)

        assert path == tmp_path / "settings" / "fractions.json"
        assert store.load("fractions") == settings

    def test_topics_are_isolated(self, tmp_path):
        store = SettingsStore(tmp_path)
        store.save("fractions", SessionSettings(difficulty=4))

        assert store.load("multiplication").difficulty == 1

    def test_corrupt_file_returns_defaults(self, tmp_path):
        store = SettingsStore(tmp_path)
        store.settings_dir.mkdir(parents=True)
        (store.settings_dir / "fractions.json").write_text("{not json", encoding="utf-8")

        assert store.load("fractions") == SessionSettings()

    def test_non_object_file_returns_defaults(self, tmp_path):
        store = SettingsStore(tmp_path)
        store.settings_dir.mkdir(parents=True)
        (store.settings_dir / "fractions.json").write_text(json.dumps([1, 2]), encoding="utf-8")

        assert store.load("fractions") == SessionSettings()

    def test_partial_file_keeps_valid_fields(self, tmp_path):
        store = SettingsStore(tmp_path)
        store.settings_dir.mkdir(parents=True)
        (store.settings_dir / "fractions.json").write_text(
            json.dumps({"problem_count": 7, "max_attempts": "many"}), encoding="utf-8"
        )

        settings = store.load("fractions")

        assert settings.problem_count == 7
        assert settings.max_attempts == 1

    def test_delete(self, tmp_path):
        store = SettingsStore(tmp_path)
        store.save("fractions", SessionSettings())

        assert store.delete("fractions")
        assert not store.delete("fractions")

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "data"
        blocker.write_text("not a directory", encoding="utf-8")
        store = SettingsStore(blocker)

        with pytest.raises(SettingsError):
            store.save("fractions", SessionSettings())
