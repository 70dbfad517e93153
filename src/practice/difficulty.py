"""
Streak-driven difficulty escalation.

Mirrors the exercise rule used across every topic: ten fully-correct
problems in a row raise the level by one, up to the topic's maximum. Any
incorrect or revealed problem breaks the streak.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

DEFAULT_STREAK_THRESHOLD = 10


@dataclass
class DifficultyAdapter:
    """Tracks the correct streak and the current difficulty level."""

    level: int = 1
    max_level: int = 5
    threshold: int = DEFAULT_STREAK_THRESHOLD
    streak: int = 0

    def __post_init__(self) -> None:
        if self.max_level < 1:
            raise ValueError(f"max_level must be >= 1, got {self.max_level}")
        if self.threshold < 1:
            raise ValueError(f"threshold must be >= 1, got {self.threshold}")
        self.level = max(1, min(self.max_level, self.level))

    def on_correct(self) -> bool:
        """Register a fully-correct problem. Returns True on level up."""
        self.streak += 1
        if self.streak >= self.threshold and self.level < self.max_level:
            self.level += 1
            self.streak = 0
            logger.info(f"Difficulty increased to {self.level}")
            return True
        return False

    def on_incorrect_or_revealed(self) -> None:
        self.streak = 0
