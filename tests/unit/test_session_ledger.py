"""
Unit tests for SessionLedger, ReviewNavigator and summarize().

Run: pytest tests/unit/test_session_ledger.py -v
"""

import pytest

from src.practice.ledger import (
    ProblemRecord,
    ReviewNavigator,
    SessionLedger,
    StepOutcome,
    summarize,
)
from src.practice.problem_source import Problem


def make_record(
    correct: bool = True,
    revealed: bool = False,
    timed_out: bool = False,
    attempts: tuple[int, ...] = (1,),
    seconds: float = 2.0,
    difficulty: int = 1,
) -> ProblemRecord:
    if correct:
        outcome = StepOutcome.CORRECT
    elif revealed:
        outcome = StepOutcome.REVEALED
    else:
        outcome = StepOutcome.INCORRECT_EXHAUSTED
    return ProblemRecord(
        problem=Problem(topic="stub", difficulty_level=difficulty, slots=1, prompt="1 × 1 = ?"),
        answers_given=((1,),),
        outcomes=(outcome,),
        overall_correct=correct,
        was_revealed=revealed,
        attempts_used=attempts,
        time_spent_seconds=seconds,
        difficulty_at_generation=difficulty,
        correct_answers=((1,),),
        timed_out=timed_out,
    )


@pytest.fixture
def ledger():
    ledger = SessionLedger()
    ledger.append(make_record(seconds=1.0))
    ledger.append(make_record(correct=False, revealed=True, attempts=(3,), seconds=5.0))
    ledger.append(make_record(correct=False, timed_out=True, seconds=10.0, difficulty=2))
    return ledger


class TestSessionLedger:
    """Append-only storage."""

    def test_append_returns_index(self):
        ledger = SessionLedger()

        assert ledger.append(make_record()) == 0
        assert ledger.append(make_record()) == 1
        assert len(ledger) == 2

    def test_rejects_non_records(self):
        with pytest.raises(TypeError):
            SessionLedger().append({"correct": True})

    def test_at_out_of_range(self, ledger):
        with pytest.raises(IndexError):
            ledger.at(3)
        with pytest.raises(IndexError):
            ledger.at(-1)

    def test_records_snapshot_is_immutable(self, ledger):
        snapshot = ledger.records
        ledger.append(make_record())

        assert isinstance(snapshot, tuple)
        assert len(snapshot) == 3

    def test_records_frozen(self, ledger):
        with pytest.raises(AttributeError):
            ledger.at(0).overall_correct = False


class TestReviewNavigator:
    """Read-only cursor."""

    def test_starts_at_latest(self, ledger):
        navigator = ReviewNavigator(ledger)

        assert navigator.index == 2
        assert navigator.position == "3/3"
        assert not navigator.has_next

    def test_moves_and_saturates(self, ledger):
        navigator = ReviewNavigator(ledger, start=0)

        assert not navigator.has_prev
        navigator.prev()
        assert navigator.index == 0
        navigator.next()
        navigator.next()
        navigator.next()
        assert navigator.index == 2

    def test_seek_clamps(self, ledger):
        navigator = ReviewNavigator(ledger)

        assert navigator.seek(-5) is ledger.at(0)
        assert navigator.seek(99) is ledger.at(2)

    def test_empty_ledger(self):
        with pytest.raises(ValueError):
            ReviewNavigator(SessionLedger())


class TestSummary:
    """Results statistics."""

    def test_counts(self, ledger):
        summary = summarize(ledger, start_difficulty=1)

        assert summary.total == 3
        assert summary.correct == 1
        assert summary.incorrect == 2
        assert summary.revealed == 1
        assert summary.timed_out == 1
        assert summary.accuracy == pytest.approx(100 / 3)

    def test_times_and_attempts(self, ledger):
        summary = summarize(ledger, start_difficulty=1)

        assert summary.total_time_seconds == pytest.approx(16.0)
        assert summary.average_time_seconds == pytest.approx(16.0 / 3)
        assert summary.total_attempts == 5
        assert summary.final_difficulty == 2

    def test_empty_ledger(self):
        summary = summarize(SessionLedger(), start_difficulty=3)

        assert summary.total == 0
        assert summary.accuracy == 0.0
        assert summary.average_time_seconds == 0.0
        assert summary.final_difficulty == 3
