"""
Configuration settings for mathdrill.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.practice.settings_store import SessionSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".mathdrill",
        description="Directory for per-topic settings and progress files",
    )
    user_id: str = Field(
        default="default",
        description="Progress profile name",
    )

    # ========================================
    # Session Defaults
    # ========================================
    default_difficulty: int = Field(
        default=1,
        description="Starting difficulty level",
    )
    default_problem_count: int = Field(
        default=10,
        description="Problems per session before compensation",
    )
    default_time_limit_seconds: int = Field(
        default=0,
        description="Per-problem time limit (0 for no limit)",
    )
    default_max_attempts: int = Field(
        default=1,
        description="Attempts per step (0 for unlimited)",
    )
    adaptive_difficulty: bool = Field(
        default=True,
        description="Raise the level after a streak of correct problems",
    )
    enable_compensation: bool = Field(
        default=False,
        description="Add one problem for every failed or revealed problem",
    )
    auto_continue: bool = Field(
        default=False,
        description="Advance automatically after showing an outcome",
    )

    # ========================================
    # Adaptive Difficulty
    # ========================================
    streak_threshold: int = Field(
        default=10,
        description="Consecutive correct problems needed to level up",
    )
    auto_continue_delay_seconds: float = Field(
        default=2.0,
        description="Delay before auto-advancing to the next problem",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def session_defaults(self) -> SessionSettings:
        """Session settings used when a topic has nothing stored."""
        return SessionSettings(
            difficulty=self.default_difficulty,
            problem_count=self.default_problem_count,
            time_limit_seconds=self.default_time_limit_seconds,
            max_attempts=self.default_max_attempts,
            adaptive_difficulty_enabled=self.adaptive_difficulty,
            compensation_enabled=self.enable_compensation,
            auto_continue_enabled=self.auto_continue,
            streak_threshold=self.streak_threshold,
            auto_continue_delay_seconds=self.auto_continue_delay_seconds,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
