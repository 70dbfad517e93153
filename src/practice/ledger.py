"""
Append-only history of resolved problems and a read-only review cursor.

The ledger is the source of truth for the results summary and for review
browsing. Records are frozen and never replaced once appended.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

from .problem_source import Problem


class StepOutcome(str, Enum):
    """Outcome of one answer step. Never changed once assigned."""

    CORRECT = "correct"
    INCORRECT_RETRYABLE = "incorrect_retryable"
    INCORRECT_EXHAUSTED = "incorrect_exhausted"
    REVEALED = "revealed"


@dataclass(frozen=True)
class ProblemRecord:
    """A resolved problem as stored in the session ledger."""

    problem: Problem
    answers_given: tuple[tuple[Any, ...], ...]
    outcomes: tuple[StepOutcome, ...]
    overall_correct: bool
    was_revealed: bool
    attempts_used: tuple[int, ...]
    time_spent_seconds: float
    difficulty_at_generation: int
    correct_answers: tuple[tuple[Any, ...], ...] = ()
    timed_out: bool = False

    @property
    def total_attempts(self) -> int:
        return sum(self.attempts_used)

    @property
    def final_outcome(self) -> StepOutcome:
        return self.outcomes[-1]


class SessionLedger:
    """Ordered, write-once log of ProblemRecords."""

    def __init__(self) -> None:
        self._records: list[ProblemRecord] = []

    def append(self, record: ProblemRecord) -> int:
        """Append a record and return its index."""
        if not isinstance(record, ProblemRecord):
            raise TypeError(f"Expected ProblemRecord, got {type(record).__name__}")
        self._records.append(record)
        return len(self._records) - 1

    def at(self, index: int) -> ProblemRecord:
        if index < 0 or index >= len(self._records):
            raise IndexError(f"Ledger index {index} out of range (0..{len(self._records) - 1})")
        return self._records[index]

    @property
    def records(self) -> tuple[ProblemRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ProblemRecord]:
        return iter(tuple(self._records))


class ReviewNavigator:
    """
    Read-only cursor over ledger entries.

    Independent of the live session: moving the cursor never touches the
    in-flight problem. The index saturates at both ends.
    """

    def __init__(self, ledger: SessionLedger, start: int | None = None):
        if len(ledger) == 0:
            raise ValueError("Cannot review an empty ledger")
        self._ledger = ledger
        self._index = 0
        self.seek(len(ledger) - 1 if start is None else start)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> ProblemRecord:
        return self._ledger.at(self._index)

    @property
    def has_prev(self) -> bool:
        return self._index > 0

    @property
    def has_next(self) -> bool:
        return self._index < len(self._ledger) - 1

    @property
    def position(self) -> str:
        return f"{self._index + 1}/{len(self._ledger)}"

    def seek(self, index: int) -> ProblemRecord:
        self._index = max(0, min(len(self._ledger) - 1, index))
        return self.current

    def next(self) -> ProblemRecord:
        return self.seek(self._index + 1)

    def prev(self) -> ProblemRecord:
        return self.seek(self._index - 1)


@dataclass(frozen=True)
class SessionSummary:
    """Results screen statistics computed from the ledger."""

    total: int
    correct: int
    revealed: int
    timed_out: int
    accuracy: float  # percent
    total_time_seconds: float
    average_time_seconds: float
    total_attempts: int
    average_attempts: float
    final_difficulty: int

    @property
    def incorrect(self) -> int:
        return self.total - self.correct


def summarize(ledger: SessionLedger, start_difficulty: int) -> SessionSummary:
    """Compute summary statistics for a finished (or in-progress) session."""
    records = ledger.records
    total = len(records)
    correct = sum(1 for r in records if r.overall_correct)
    total_time = sum(r.time_spent_seconds for r in records)
    total_attempts = sum(r.total_attempts for r in records)

    return SessionSummary(
        total=total,
        correct=correct,
        revealed=sum(1 for r in records if r.was_revealed),
        timed_out=sum(1 for r in records if r.timed_out),
        accuracy=(correct / total * 100) if total else 0.0,
        total_time_seconds=total_time,
        average_time_seconds=(total_time / total) if total else 0.0,
        total_attempts=total_attempts,
        average_attempts=(total_attempts / total) if total else 0.0,
        final_difficulty=records[-1].difficulty_at_generation if records else start_difficulty,
    )
