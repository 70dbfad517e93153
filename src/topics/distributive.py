"""
Distributive property: a × (b ± c) = (a × b) ± (a × c) with missing numbers.

Levels 1-3 hide one number on the expanded side, level 4 may hide two.
From level 3 on, a correct expansion is followed by a second step asking
for the final result.
"""

from __future__ import annotations

import random
from typing import Any, Sequence

from src.practice.problem_source import GradeResult, Problem, Step

from . import register_topic
from .base import clamp_level, distinct_ints, parse_int

SECOND_STEP_MIN_DIFFICULTY = 3
TWO_BLANKS_MIN_DIFFICULTY = 4

NUMBER_RANGES = {1: (1, 5), 2: (1, 10), 3: (2, 12), 4: (2, 15)}
POSITIONS = ("a1", "b", "a2", "c")


@register_topic("distributive")
class DistributiveSource:
    """Problem source for expanding a × (b ± c)."""

    topic = "distributive"
    max_difficulty = 4

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def generate(self, difficulty: int) -> Problem:
        level = clamp_level(difficulty, self.max_difficulty)
        low, high = NUMBER_RANGES[level]
        a, b, c = distinct_ints(self.rng, 3, low, high)
        op = "-" if level >= 3 and self.rng.random() < 0.4 else "+"

        if level >= TWO_BLANKS_MIN_DIFFICULTY and self.rng.random() < 0.5:
            blanks = sorted(self.rng.sample(POSITIONS, 2), key=POSITIONS.index)
        else:
            blanks = [self.rng.choice(POSITIONS)]

        values = {"a1": a, "b": b, "a2": a, "c": c}
        shown = {pos: ("?" if pos in blanks else str(val)) for pos, val in values.items()}
        result = a * (b + c if op == "+" else b - c)
        requires_second = level >= SECOND_STEP_MIN_DIFFICULTY

        return Problem(
            topic=self.topic,
            difficulty_level=level,
            slots=len(blanks),
            prompt=(
                f"{a} × ({b} {op} {c}) = "
                f"({shown['a1']} × {shown['b']}) {op} ({shown['a2']} × {shown['c']})"
            ),
            second_step_slots=1 if requires_second else 0,
            second_step_prompt=f"{a} × ({b} {op} {c}) = ?" if requires_second else None,
            data={
                "blanks": tuple(blanks),
                "answers": tuple(values[pos] for pos in blanks),
                "result": result,
                "requires_second_step": requires_second,
            },
        )

    def parse_slot(self, problem: Problem, step: Step, index: int, raw: str) -> Any:
        label = "the result" if step is Step.SECOND else f"blank {index + 1}"
        return parse_int(raw, label)

    def grade(self, problem: Problem, answers: Sequence[Any], step: Step = Step.BLANKS) -> GradeResult:
        expected = self.correct_answers(problem, step)
        per_slot = tuple(
            i < len(answers) and answers[i] == value for i, value in enumerate(expected)
        )
        return GradeResult(correct=all(per_slot), per_slot_correct=per_slot)

    def requires_second_step(self, problem: Problem) -> bool:
        return bool(problem.data.get("requires_second_step"))

    def correct_answers(self, problem: Problem, step: Step = Step.BLANKS) -> tuple[Any, ...]:
        if step is Step.SECOND:
            return (problem.data["result"],) if self.requires_second_step(problem) else ()
        return tuple(problem.data["answers"])
