"""Helpers shared by topic sources."""

from __future__ import annotations

import random


def parse_int(raw: str, label: str = "value") -> int:
    """
    Coerce typed text to an integer.

    Accepts surrounding whitespace, a leading sign and a trailing ".0";
    anything else is a validation error, not a wrong answer.
    """
    text = raw.strip().replace(" ", "")
    if text.endswith(".0"):
        text = text[:-2]
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"Invalid number for {label}.") from None


def distinct_ints(rng: random.Random, count: int, low: int, high: int) -> list[int]:
    """Draw `count` distinct integers from [low, high] when the range allows it."""
    span = high - low + 1
    if span >= count:
        return rng.sample(range(low, high + 1), count)
    return [rng.randint(low, high) for _ in range(count)]


def clamp_level(difficulty: int, max_difficulty: int) -> int:
    return max(1, min(max_difficulty, int(round(difficulty))))
