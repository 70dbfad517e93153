"""
Multiplication facts: one blank for the product.

Factor ranges widen with the level; level 5 multiplies a two-digit number.
"""

from __future__ import annotations

import random
from typing import Any, Sequence

from src.practice.problem_source import GradeResult, Problem, Step

from . import register_topic
from .base import clamp_level, parse_int

# (low, high) for the first and second factor
FACTOR_RANGES = {
    1: ((1, 5), (1, 5)),
    2: ((1, 10), (1, 10)),
    3: ((2, 12), (2, 12)),
    4: ((2, 15), (2, 20)),
    5: ((10, 99), (2, 12)),
}


@register_topic("multiplication")
class MultiplicationSource:
    """Problem source for multiplication facts."""

    topic = "multiplication"
    max_difficulty = 5

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def generate(self, difficulty: int) -> Problem:
        level = clamp_level(difficulty, self.max_difficulty)
        (lo1, hi1), (lo2, hi2) = FACTOR_RANGES[level]
        a = self.rng.randint(lo1, hi1)
        b = self.rng.randint(lo2, hi2)
        return Problem(
            topic=self.topic,
            difficulty_level=level,
            slots=1,
            prompt=f"{a} × {b} = ?",
            data={"a": a, "b": b, "product": a * b},
        )

    def parse_slot(self, problem: Problem, step: Step, index: int, raw: str) -> Any:
        return parse_int(raw, "the product")

    def grade(self, problem: Problem, answers: Sequence[Any], step: Step = Step.BLANKS) -> GradeResult:
        ok = len(answers) == 1 and answers[0] == problem.data["product"]
        return GradeResult(correct=ok, per_slot_correct=(ok,))

    def requires_second_step(self, problem: Problem) -> bool:
        return False

    def correct_answers(self, problem: Problem, step: Step = Step.BLANKS) -> tuple[Any, ...]:
        if step is Step.SECOND:
            return ()
        return (problem.data["product"],)
