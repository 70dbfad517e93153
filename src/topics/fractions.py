"""
Fraction arithmetic with two blanks: numerator and denominator.

Answers must be in lowest terms with a positive denominator, so 2/4 is
graded wrong when 1/2 is expected even though the values are equal.
"""

from __future__ import annotations

import random
from fractions import Fraction
from typing import Any, Sequence

from src.practice.problem_source import GradeResult, Problem, Step

from . import register_topic
from .base import clamp_level, parse_int

# level -> (operators, max denominator)
LEVELS = {
    1: (("+",), 6),
    2: (("+", "-"), 8),
    3: (("+", "-", "×"), 10),
    4: (("+", "-", "×", "÷"), 12),
    5: (("+", "-", "×", "÷"), 20),
}


@register_topic("fractions")
class FractionSource:
    """Problem source for adding, subtracting, multiplying and dividing fractions."""

    topic = "fractions"
    max_difficulty = 5

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def generate(self, difficulty: int) -> Problem:
        level = clamp_level(difficulty, self.max_difficulty)
        operators, max_den = LEVELS[level]
        op = self.rng.choice(operators)

        d1 = self.rng.randint(2, max_den)
        # Level 1 keeps a common denominator
        d2 = d1 if level == 1 else self.rng.randint(2, max_den)
        n1 = self.rng.randint(1, d1 - 1)
        n2 = self.rng.randint(1, d2 - 1)

        left, right = Fraction(n1, d1), Fraction(n2, d2)
        if op == "-" and left < right:
            (n1, d1), (n2, d2) = (n2, d2), (n1, d1)
            left, right = right, left

        result = {
            "+": lambda: left + right,
            "-": lambda: left - right,
            "×": lambda: left * right,
            "÷": lambda: left / right,
        }[op]()

        return Problem(
            topic=self.topic,
            difficulty_level=level,
            slots=2,
            prompt=f"{n1}/{d1} {op} {n2}/{d2} = ?/?",
            data={
                "operands": ((n1, d1), (n2, d2)),
                "operator": op,
                "numerator": result.numerator,
                "denominator": result.denominator,
            },
        )

    def parse_slot(self, problem: Problem, step: Step, index: int, raw: str) -> Any:
        label = "the numerator" if index == 0 else "the denominator"
        value = parse_int(raw, label)
        if index == 1 and value == 0:
            raise ValueError("The denominator cannot be 0.")
        return value

    def grade(self, problem: Problem, answers: Sequence[Any], step: Step = Step.BLANKS) -> GradeResult:
        expected = (problem.data["numerator"], problem.data["denominator"])
        per_slot = tuple(
            i < len(answers) and answers[i] == expected[i] for i in range(2)
        )
        return GradeResult(correct=all(per_slot), per_slot_correct=per_slot)

    def requires_second_step(self, problem: Problem) -> bool:
        return False

    def correct_answers(self, problem: Problem, step: Step = Step.BLANKS) -> tuple[Any, ...]:
        if step is Step.SECOND:
            return ()
        return (problem.data["numerator"], problem.data["denominator"])
