"""
Practice Session Controller: the state machine behind every exercise topic.

One controller drives one session for one ProblemSource:

    ACTIVE(blanks) -> [ACTIVE(second)] -> SHOWING_OUTCOME -> ACTIVE(next) | COMPLETE

Reviewing is an orthogonal flag. While it is set, submissions and
advancing are refused, the auto-advance timer is cancelled, and a time
limit that expires is held back until review ends.

Every operation runs to completion synchronously. Timers are scheduled on
the injected TimerScheduler and guarded by an epoch that changes on each
phase transition.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from loguru import logger

from .attempts import AttemptTracker
from .difficulty import DifficultyAdapter
from .errors import ProblemContractError
from .events import ProgressEvent, ProgressEventBus
from .ledger import (
    ProblemRecord,
    ReviewNavigator,
    SessionLedger,
    SessionSummary,
    StepOutcome,
    summarize,
)
from .problem_source import (
    Problem,
    ProblemSource,
    Step,
    check_grade,
    check_problem,
    parse_answer_set,
)
from .settings_store import SessionSettings
from .timers import CancellableTimer, Clock, TimerScheduler

MAX_REGENERATIONS = 3


class SessionPhase(str, Enum):
    """Phase of the live session."""

    ACTIVE = "active"
    SHOWING_OUTCOME = "showing_outcome"
    COMPLETE = "complete"


class SubmissionStatus(str, Enum):
    """What happened to a submitted answer set."""

    INVALID_INPUT = "invalid_input"  # Nothing graded, no attempt used
    RETRY = "retry"  # Graded incorrect, attempts remain
    ADVANCED_TO_SECOND_STEP = "advanced_to_second_step"
    RESOLVED = "resolved"  # Problem reached a terminal outcome
    REJECTED = "rejected"  # Wrong phase, reviewing, or re-entrant call


@dataclass(frozen=True)
class SubmissionResult:
    """Feedback for one submit_answer() call."""

    status: SubmissionStatus
    outcome: StepOutcome | None = None
    per_slot_correct: tuple[bool, ...] = ()
    slot_errors: tuple[str | None, ...] = ()
    attempts_left: int | None = None
    record: ProblemRecord | None = None
    leveled_up: bool = False


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the session counters."""

    target_problem_count: int
    completed_count: int
    consecutive_correct_streak: int
    current_difficulty: int


class SessionController:
    """
    Generic controller for one practice session.

    Args:
        source: ProblemSource for the active topic
        settings: session options (defaults if omitted)
        scheduler: timer scheduler polled by the host loop
        clock: monotonic clock for per-problem timing (defaults to the scheduler's)
        events: bus receiving one ProgressEvent per resolved problem
    """

    def __init__(
        self,
        source: ProblemSource,
        settings: SessionSettings | None = None,
        *,
        scheduler: TimerScheduler | None = None,
        clock: Clock | None = None,
        events: ProgressEventBus | None = None,
    ):
        self.source = source
        self.settings = settings or SessionSettings()
        self.scheduler = scheduler or TimerScheduler(clock or time.monotonic)
        self.clock: Clock = clock or self.scheduler.clock
        self.events = events or ProgressEventBus()

        self._epoch = 0
        self._closed = False
        self._busy = False
        self._reviewing = False
        self._paused = False
        self._timeout_pending = False
        self._level_up_pending = False
        self._auto_advance = self.settings.auto_continue_enabled
        self._auto_timer: CancellableTimer | None = None
        self._limit_timer: CancellableTimer | None = None

        self._begin_session()

    # =========================================================================
    # Read-only view
    # =========================================================================

    @property
    def topic(self) -> str:
        return self.source.topic

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def current_step(self) -> Step:
        return self._step

    @property
    def problem(self) -> Problem:
        return self._problem

    @property
    def ledger(self) -> SessionLedger:
        return self._ledger

    @property
    def state(self) -> SessionState:
        return SessionState(
            target_problem_count=self._target,
            completed_count=len(self._ledger),
            consecutive_correct_streak=self._adapter.streak,
            current_difficulty=self._adapter.level,
        )

    @property
    def difficulty(self) -> int:
        return self._adapter.level

    @property
    def target_problem_count(self) -> int:
        return self._target

    @property
    def completed_count(self) -> int:
        return len(self._ledger)

    @property
    def attempts(self) -> int:
        """Attempts used on the step in progress."""
        return self._tracker.attempts

    @property
    def attempts_left(self) -> int | None:
        return self._tracker.attempts_left()

    @property
    def last_record(self) -> ProblemRecord | None:
        return self._ledger.at(len(self._ledger) - 1) if len(self._ledger) else None

    @property
    def is_complete(self) -> bool:
        return self._phase is SessionPhase.COMPLETE

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def reviewing(self) -> bool:
        return self._reviewing

    @property
    def can_reveal(self) -> bool:
        return (
            self._phase is SessionPhase.ACTIVE
            and self._step is Step.BLANKS
            and not self._reviewing
            and not self._busy
            and not self._closed
        )

    @property
    def auto_advance_enabled(self) -> bool:
        return self._auto_advance

    @property
    def auto_advance_armed(self) -> bool:
        return self._auto_timer is not None and self._auto_timer.active

    def time_remaining(self) -> float | None:
        """Seconds left on the per-problem time limit, or None without one."""
        if self._limit_timer is None or not self._limit_timer.active:
            return None
        return max(0.0, self._limit_timer.deadline - self.clock())

    def summary(self) -> SessionSummary:
        return summarize(self._ledger, self._start_difficulty)

    # =========================================================================
    # Operations
    # =========================================================================

    def submit_answer(self, answers: Sequence[Any]) -> SubmissionResult:
        """Grade an answer set for the active step."""
        if self._busy:
            logger.debug("Submission rejected: another submission is in progress")
            return SubmissionResult(SubmissionStatus.REJECTED)
        if self._closed or self._reviewing or self._phase is not SessionPhase.ACTIVE:
            logger.debug(f"Submission rejected in phase {self._phase.value} (reviewing={self._reviewing})")
            return SubmissionResult(SubmissionStatus.REJECTED)

        self._busy = True
        try:
            return self._grade_submission(answers)
        finally:
            self._busy = False

    def reveal_answer(self) -> ProblemRecord | None:
        """Disclose the blanks' answers. Only available during the blank-filling step."""
        if not self.can_reveal:
            logger.debug(f"Reveal ignored (phase={self._phase.value}, step={self._step.value})")
            return None

        self._busy = True
        try:
            attempts = self._tracker.exhaust()
            self._step_answers.append(tuple(None for _ in range(self._problem.slots)))
            self._step_attempts.append(attempts)
            self._step_outcomes.append(StepOutcome.REVEALED)
            return self._resolve(correct=False, revealed=True)
        finally:
            self._busy = False

    def advance(self) -> bool:
        """
        Continue after an outcome: next problem, or completion.

        Returns True if the session moved. Ignored unless an outcome is
        being shown and review is closed.
        """
        if self._closed or self._reviewing or self._phase is not SessionPhase.SHOWING_OUTCOME:
            logger.debug(f"Advance ignored in phase {self._phase.value} (reviewing={self._reviewing})")
            return False

        if len(self._ledger) >= self._target:
            self._enter_phase(SessionPhase.COMPLETE)
            logger.info(
                f"Session complete: {self.summary().correct}/{len(self._ledger)} correct "
                f"on topic '{self.topic}'"
            )
            return True

        problem = self._generate_problem()
        self._activate(problem)
        return True

    def enter_review(self) -> ReviewNavigator | None:
        """Open a cursor over resolved problems, suspending live transitions."""
        if self._closed or len(self._ledger) == 0:
            return None
        self._reviewing = True
        self._cancel_auto_timer()
        return ReviewNavigator(self._ledger)

    def exit_review(self) -> None:
        """Close review and resume the live session where it was left."""
        if not self._reviewing:
            return
        self._reviewing = False

        if self._timeout_pending and self._phase is SessionPhase.ACTIVE:
            self._timeout_pending = False
            self._resolve_timeout()
            return
        self._maybe_arm_auto_timer()

    def pause_auto_advance(self) -> None:
        """Hold signal: stop a pending auto-advance for the shown outcome."""
        self._paused = True
        self._cancel_auto_timer()

    def resume_auto_advance(self) -> None:
        """Release the hold and re-arm the auto-advance delay if applicable."""
        if not self._paused:
            return
        self._paused = False
        self._maybe_arm_auto_timer()

    def set_auto_advance(self, enabled: bool) -> None:
        self._auto_advance = enabled
        if enabled:
            self._maybe_arm_auto_timer()
        else:
            self._cancel_auto_timer()

    def restart(self) -> None:
        """Throw away the current session and start again from the settings."""
        if self._closed:
            return
        self._cancel_timers()
        self._begin_session()

    def apply_settings(self, settings: SessionSettings) -> None:
        """Settings-changed hook: adopt new settings and restart."""
        self.settings = settings
        self._auto_advance = settings.auto_continue_enabled
        self.restart()

    def close(self) -> None:
        """Teardown: cancel timers; the controller ignores further calls."""
        if self._closed:
            return
        self._closed = True
        self._epoch += 1
        self._cancel_timers()
        logger.debug(f"Session controller for '{self.topic}' closed")

    # =========================================================================
    # Internals
    # =========================================================================

    def _begin_session(self) -> None:
        max_level = max(1, int(self.source.max_difficulty))
        self._start_difficulty = max(1, min(max_level, self.settings.difficulty))
        self._adapter = DifficultyAdapter(
            level=self._start_difficulty,
            max_level=max_level,
            threshold=self.settings.streak_threshold,
        )
        self._ledger = SessionLedger()
        self._target = self.settings.problem_count
        self._reviewing = False
        self._timeout_pending = False
        self._phase = SessionPhase.ACTIVE
        self._activate(self._generate_problem())
        logger.info(
            f"Session started: topic='{self.topic}' problems={self._target} "
            f"difficulty={self._start_difficulty} max_attempts={self.settings.max_attempts}"
        )

    def _generate_problem(self) -> Problem:
        level = self._adapter.level
        for attempt in range(1, MAX_REGENERATIONS + 1):
            problem = self.source.generate(level)
            try:
                check_problem(self.source, problem)
            except ProblemContractError as e:
                logger.warning(f"Discarding malformed problem ({attempt}/{MAX_REGENERATIONS}): {e}")
                continue
            return problem
        raise ProblemContractError(
            self.topic, f"no well-formed problem after {MAX_REGENERATIONS} attempts at level {level}"
        )

    def _activate(self, problem: Problem) -> None:
        """Make a problem live and reset every per-problem value."""
        self._problem = problem
        self._difficulty_at_generation = self._adapter.level
        self._step = Step.BLANKS
        self._tracker = AttemptTracker(max_attempts=self.settings.max_attempts)
        self._step_answers: list[tuple[Any, ...]] = []
        self._step_attempts: list[int] = []
        self._step_outcomes: list[StepOutcome] = []
        self._last_answers: tuple[Any, ...] | None = None
        self._timeout_pending = False
        self._started_at = self.clock()
        self._enter_phase(SessionPhase.ACTIVE)

        if self.settings.time_limit_seconds > 0:
            self._limit_timer = self.scheduler.call_later(
                self.settings.time_limit_seconds,
                self._on_time_limit,
                name="time_limit",
                epoch=self._epoch,
                epoch_source=lambda: self._epoch,
            )

    def _enter_phase(self, phase: SessionPhase) -> None:
        self._epoch += 1
        self._cancel_timers()
        self._paused = False
        self._phase = phase
        logger.debug(f"[{self.topic}] -> {phase.value} (epoch {self._epoch})")
        if phase is SessionPhase.SHOWING_OUTCOME:
            self._maybe_arm_auto_timer()

    def _grade_submission(self, answers: Sequence[Any]) -> SubmissionResult:
        step = self._step
        parsed = parse_answer_set(self.source, self._problem, step, answers)
        if not parsed.is_valid:
            return SubmissionResult(
                SubmissionStatus.INVALID_INPUT,
                slot_errors=parsed.errors,
                attempts_left=self._tracker.attempts_left(),
            )

        # A rejected grade result must not count as an attempt
        result = self.source.grade(self._problem, parsed.values, step)
        check_grade(self.source, self._problem, step, result)
        self._tracker.record_attempt()
        self._last_answers = parsed.values

        if result.correct:
            self._step_answers.append(parsed.values)
            self._step_attempts.append(self._tracker.attempts)
            self._step_outcomes.append(StepOutcome.CORRECT)

            if step is Step.BLANKS and self.source.requires_second_step(self._problem):
                self._step = Step.SECOND
                self._tracker = AttemptTracker(max_attempts=self.settings.max_attempts)
                self._last_answers = None
                return SubmissionResult(
                    SubmissionStatus.ADVANCED_TO_SECOND_STEP,
                    outcome=StepOutcome.CORRECT,
                    per_slot_correct=result.per_slot_correct,
                    attempts_left=self._tracker.attempts_left(),
                )

            record = self._resolve(correct=True, revealed=False)
            return SubmissionResult(
                SubmissionStatus.RESOLVED,
                outcome=StepOutcome.CORRECT,
                per_slot_correct=result.per_slot_correct,
                attempts_left=self._tracker.attempts_left(),
                record=record,
                leveled_up=self._level_up_pending,
            )

        if self._tracker.has_retries_left():
            return SubmissionResult(
                SubmissionStatus.RETRY,
                outcome=StepOutcome.INCORRECT_RETRYABLE,
                per_slot_correct=result.per_slot_correct,
                attempts_left=self._tracker.attempts_left(),
            )

        self._step_answers.append(parsed.values)
        self._step_attempts.append(self._tracker.attempts)
        self._step_outcomes.append(StepOutcome.INCORRECT_EXHAUSTED)
        record = self._resolve(correct=False, revealed=False)
        return SubmissionResult(
            SubmissionStatus.RESOLVED,
            outcome=StepOutcome.INCORRECT_EXHAUSTED,
            per_slot_correct=result.per_slot_correct,
            attempts_left=0,
            record=record,
        )

    def _on_time_limit(self) -> None:
        if self._closed or self._phase is not SessionPhase.ACTIVE:
            return
        if self._reviewing:
            logger.debug("Time limit reached during review, deferring")
            self._timeout_pending = True
            return
        self._resolve_timeout()

    def _resolve_timeout(self) -> None:
        slots = self._problem.slot_count(self._step)
        answers = self._last_answers or tuple(None for _ in range(slots))
        self._step_answers.append(answers)
        self._step_attempts.append(self._tracker.attempts)
        self._step_outcomes.append(StepOutcome.INCORRECT_EXHAUSTED)
        logger.info(f"Time limit of {self.settings.time_limit_seconds}s reached")
        self._resolve(correct=False, revealed=False, timed_out=True)

    def _resolve(self, *, correct: bool, revealed: bool, timed_out: bool = False) -> ProblemRecord:
        """Record the terminal outcome of the live problem and show it."""
        time_spent = max(0.0, self.clock() - self._started_at)
        problem = self._problem

        correct_answers = [self.source.correct_answers(problem, Step.BLANKS)]
        if self.source.requires_second_step(problem):
            correct_answers.append(self.source.correct_answers(problem, Step.SECOND))

        record = ProblemRecord(
            problem=problem,
            answers_given=tuple(self._step_answers),
            outcomes=tuple(self._step_outcomes),
            overall_correct=correct,
            was_revealed=revealed,
            attempts_used=tuple(self._step_attempts),
            time_spent_seconds=time_spent,
            difficulty_at_generation=self._difficulty_at_generation,
            correct_answers=tuple(correct_answers),
            timed_out=timed_out,
        )
        self._ledger.append(record)

        self._level_up_pending = False
        if self.settings.adaptive_difficulty_enabled:
            if correct:
                self._level_up_pending = self._adapter.on_correct()
            else:
                self._adapter.on_incorrect_or_revealed()

        if not correct and self.settings.compensation_enabled:
            self._target += 1
            logger.info(f"Compensation: target raised to {self._target} problems")

        self.events.publish(
            ProgressEvent(
                topic=self.topic,
                correct=correct,
                time_spent_seconds=time_spent,
                difficulty=self._difficulty_at_generation,
                attempts=record.total_attempts,
                revealed=revealed,
            )
        )

        self._enter_phase(SessionPhase.SHOWING_OUTCOME)
        return record

    def _maybe_arm_auto_timer(self) -> None:
        if (
            self._closed
            or not self._auto_advance
            or self._paused
            or self._reviewing
            or self._phase is not SessionPhase.SHOWING_OUTCOME
        ):
            return
        self._cancel_auto_timer()
        self._auto_timer = self.scheduler.call_later(
            self.settings.auto_continue_delay_seconds,
            self.advance,
            name="auto_advance",
            epoch=self._epoch,
            epoch_source=lambda: self._epoch,
        )

    def _cancel_auto_timer(self) -> None:
        if self._auto_timer is not None:
            self._auto_timer.cancel()
            self._auto_timer = None

    def _cancel_timers(self) -> None:
        self._cancel_auto_timer()
        if self._limit_timer is not None:
            self._limit_timer.cancel()
            self._limit_timer = None
