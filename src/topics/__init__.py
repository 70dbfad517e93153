"""
Problem sources for the practice topics.

Each topic module provides a ProblemSource:
- generate(): build a problem at a difficulty level
- parse_slot(): coerce one raw answer value
- grade(): check a full answer set
- requires_second_step() / correct_answers()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from src.practice.errors import UnknownTopicError

if TYPE_CHECKING:
    from src.practice.problem_source import ProblemSource

# Topic registry - populated by @register_topic decorator
TOPICS: dict[str, Callable[..., "ProblemSource"]] = {}


def register_topic(name: str):
    """Decorator to register a problem source class under a topic name."""
    def decorator(cls):
        TOPICS[name] = cls
        return cls
    return decorator


def get_source(name: str, seed: int | None = None) -> "ProblemSource":
    """Create a fresh problem source for a topic."""
    factory = TOPICS.get(name.strip().lower())
    if factory is None:
        raise UnknownTopicError(name)
    return factory(seed=seed)


def list_topics() -> list[str]:
    return sorted(TOPICS)


# Import sources to trigger registration
from . import distributive
from . import fractions
from . import multiplication

__all__ = [
    "TOPICS",
    "get_source",
    "list_topics",
    "register_topic",
]
