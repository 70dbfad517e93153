"""
ProblemSource protocol and the value types exchanged with it.

A ProblemSource is the per-topic collaborator of the session controller. It
builds problems at a difficulty level and grades raw answers; the controller
never looks inside a Problem beyond the declared slot counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence

from .errors import ProblemContractError


class Step(str, Enum):
    """Answer step of a problem."""

    BLANKS = "blanks"  # Fill in the missing values
    SECOND = "second"  # Dependent follow-up computation


@dataclass(frozen=True)
class Problem:
    """One generated exercise instance."""

    topic: str
    difficulty_level: int
    slots: int
    prompt: str
    second_step_slots: int = 0
    second_step_prompt: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)

    def slot_count(self, step: Step) -> int:
        return self.slots if step is Step.BLANKS else self.second_step_slots


@dataclass(frozen=True)
class GradeResult:
    """Result of grading a full answer set for one step."""

    correct: bool
    per_slot_correct: tuple[bool, ...]


@dataclass(frozen=True)
class ParsedAnswers:
    """Answer set after slot-by-slot coercion."""

    values: tuple[Any, ...]
    errors: tuple[str | None, ...]

    @property
    def is_valid(self) -> bool:
        return all(err is None for err in self.errors)


class ProblemSource(Protocol):
    """Protocol for per-topic problem generators/graders."""

    topic: str
    max_difficulty: int

    def generate(self, difficulty: int) -> Problem:
        """Build a new problem at the given level. Must not touch session state."""
        ...

    def parse_slot(self, problem: Problem, step: Step, index: int, raw: str) -> Any:
        """Coerce one raw slot value. Raises ValueError if not coercible."""
        ...

    def grade(self, problem: Problem, answers: Sequence[Any], step: Step = Step.BLANKS) -> GradeResult:
        """Grade a parsed answer set. Deterministic for a given problem/answers pair."""
        ...

    def requires_second_step(self, problem: Problem) -> bool:
        """Whether a dependent calculation follows the blanks."""
        ...

    def correct_answers(self, problem: Problem, step: Step = Step.BLANKS) -> tuple[Any, ...]:
        """Correct values for display after exhaustion or reveal."""
        ...


def parse_answer_set(
    source: ProblemSource,
    problem: Problem,
    step: Step,
    raw_answers: Sequence[Any],
) -> ParsedAnswers:
    """
    Coerce a raw answer set for the active step.

    Empty or non-coercible slots produce a per-slot message instead of a
    value. Missing slots count as empty; surplus values reject the whole set.
    """
    expected = problem.slot_count(step)
    raw = list(raw_answers)
    if len(raw) > expected:
        message = f"Expected {expected} value(s), got {len(raw)}."
        return ParsedAnswers(values=(None,) * expected, errors=(message,) * expected)
    raw += [""] * (expected - len(raw))

    values: list[Any] = []
    errors: list[str | None] = []
    for index, item in enumerate(raw):
        text = "" if item is None else str(item).strip()
        if text == "":
            values.append(None)
            errors.append(f"Please enter a value for blank {index + 1}.")
            continue
        try:
            values.append(source.parse_slot(problem, step, index, text))
            errors.append(None)
        except ValueError as e:
            values.append(None)
            errors.append(str(e) or f"Invalid value for blank {index + 1}.")

    return ParsedAnswers(values=tuple(values), errors=tuple(errors))


def check_problem(source: ProblemSource, problem: Problem) -> None:
    """
    Verify a freshly generated problem against its own declarations.

    Raises:
        ProblemContractError: if the slot counts are unusable or the exposed
            correct answers do not match them.
    """
    topic = getattr(source, "topic", problem.topic)
    if problem.slots < 1:
        raise ProblemContractError(topic, f"problem declares {problem.slots} answer slots")
    if problem.second_step_slots not in (0, 1):
        raise ProblemContractError(
            topic, f"problem declares {problem.second_step_slots} second-step slots"
        )

    answers = source.correct_answers(problem, Step.BLANKS)
    if len(answers) != problem.slots:
        raise ProblemContractError(
            topic,
            f"problem declares {problem.slots} slots but exposes {len(answers)} correct answers",
        )

    if source.requires_second_step(problem):
        if problem.second_step_slots != 1:
            raise ProblemContractError(topic, "second step required but no second-step slot declared")
        if len(source.correct_answers(problem, Step.SECOND)) != 1:
            raise ProblemContractError(topic, "second step must expose exactly one correct answer")


def check_grade(source: ProblemSource, problem: Problem, step: Step, result: GradeResult) -> None:
    """Raise ProblemContractError if a grade result does not match the slot count."""
    expected = problem.slot_count(step)
    if len(result.per_slot_correct) != expected:
        raise ProblemContractError(
            getattr(source, "topic", problem.topic),
            f"grade returned {len(result.per_slot_correct)} slot results for {expected} slots",
        )
