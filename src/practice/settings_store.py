"""
Session settings and their per-topic persistence.

Settings are read once when a session host starts and written back only
through SettingsStore.save(); the controller itself never touches storage.
Files live under <data_dir>/settings/<topic>.json.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import SettingsError


class SessionSettings(BaseModel):
    """Options recognised by the session controller."""

    difficulty: int = Field(default=1, description="Starting difficulty level")
    problem_count: int = Field(default=10, description="Target number of problems")
    time_limit_seconds: int = Field(default=0, description="Per-problem time limit (0 = unlimited)")
    max_attempts: int = Field(default=1, description="Attempts per step (0 = unlimited)")
    adaptive_difficulty_enabled: bool = Field(default=True)
    compensation_enabled: bool = Field(default=False, description="Add a problem per failed/revealed one")
    auto_continue_enabled: bool = Field(default=False)
    streak_threshold: int = Field(default=10, ge=1, description="Correct streak needed to level up")
    auto_continue_delay_seconds: float = Field(default=2.0, gt=0)

    @field_validator("difficulty", "problem_count", mode="before")
    @classmethod
    def _at_least_one(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 1:
            return 1
        return value

    @field_validator("time_limit_seconds", "max_attempts", mode="before")
    @classmethod
    def _not_negative(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
            return 0
        return value

    @classmethod
    def from_raw(cls, data: dict[str, Any], defaults: "SessionSettings | None" = None) -> "SessionSettings":
        """
        Build settings from loosely-typed stored data.

        Unknown keys are ignored; a field that fails validation falls back to
        its default instead of discarding the whole record.
        """
        base = (defaults or cls()).model_dump()
        merged = dict(base)
        for name, value in data.items():
            if name not in cls.model_fields:
                continue
            try:
                cls.model_validate({**base, name: value})
            except ValidationError:
                logger.warning(f"Ignoring invalid setting {name}={value!r}")
                continue
            merged[name] = value
        return cls.model_validate(merged)


class SettingsStore:
    """JSON-file storage port for per-topic session settings."""

    def __init__(self, data_dir: Path, defaults: SessionSettings | None = None):
        self.settings_dir = Path(data_dir) / "settings"
        self.defaults = defaults or SessionSettings()

    def _path(self, topic: str) -> Path:
        return self.settings_dir / f"{topic}.json"

    def load(self, topic: str) -> SessionSettings:
        """Load settings for a topic, falling back to defaults when absent or corrupt."""
        filepath = self._path(topic)
        if not filepath.exists():
            return self.defaults.model_copy()

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read settings for '{topic}': {e}")
            return self.defaults.model_copy()

        if not isinstance(data, dict):
            logger.warning(f"Settings file for '{topic}' is not an object, using defaults")
            return self.defaults.model_copy()

        return SessionSettings.from_raw(data, self.defaults)

    def save(self, topic: str, settings: SessionSettings) -> Path:
        filepath = self._path(topic)
        try:
            self.settings_dir.mkdir(parents=True, exist_ok=True)
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(settings.model_dump(), f, indent=2)
        except OSError as e:
            raise SettingsError(f"Could not save settings for '{topic}': {e}") from e
        logger.debug(f"Saved settings for '{topic}' to {filepath}")
        return filepath

    def delete(self, topic: str) -> bool:
        filepath = self._path(topic)
        if filepath.exists():
            filepath.unlink()
            return True
        return False
