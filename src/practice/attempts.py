"""Attempt counting for the step currently in progress."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AttemptTracker:
    """
    Counts submissions for one step against a configured maximum.

    max_attempts == 0 means unlimited retries.
    """

    max_attempts: int = 1
    attempts: int = 0

    def record_attempt(self) -> int:
        self.attempts += 1
        return self.attempts

    def has_retries_left(self) -> bool:
        return self.max_attempts == 0 or self.attempts < self.max_attempts

    def attempts_left(self) -> int | None:
        """Remaining attempts, or None when unlimited."""
        if self.max_attempts == 0:
            return None
        return max(0, self.max_attempts - self.attempts)

    def exhaust(self) -> int:
        """Count the step as if every attempt was used (reveal)."""
        self.attempts = self.max_attempts if self.max_attempts > 0 else 1
        return self.attempts

    def reset(self) -> None:
        self.attempts = 0
