"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path
from typing import Any, Sequence

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.practice.problem_source import GradeResult, Problem, Step
from src.practice.settings_store import SessionSettings
from src.practice.timers import ManualClock, TimerScheduler


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class StubSource:
    """
    Deterministic ProblemSource for controller tests.

    Every problem asks for `slots` blanks whose correct values are
    1, 2, ...; the second step, when enabled, expects 99.
    """

    topic = "stub"

    def __init__(self, slots: int = 1, second_step: bool = False, max_difficulty: int = 5):
        self.slots = slots
        self.second_step = second_step
        self.max_difficulty = max_difficulty
        self.generated: list[int] = []

    def generate(self, difficulty: int) -> Problem:
        self.generated.append(difficulty)
        return Problem(
            topic=self.topic,
            difficulty_level=difficulty,
            slots=self.slots,
            prompt=f"stub #{len(self.generated)}",
            second_step_slots=1 if self.second_step else 0,
            second_step_prompt="result?" if self.second_step else None,
            data={"answers": tuple(range(1, self.slots + 1)), "result": 99},
        )

    def parse_slot(self, problem: Problem, step: Step, index: int, raw: str) -> Any:
        return int(raw)

    def grade(self, problem: Problem, answers: Sequence[Any], step: Step = Step.BLANKS) -> GradeResult:
        expected = self.correct_answers(problem, step)
        per_slot = tuple(answers[i] == value for i, value in enumerate(expected))
        return GradeResult(correct=all(per_slot), per_slot_correct=per_slot)

    def requires_second_step(self, problem: Problem) -> bool:
        return self.second_step

    def correct_answers(self, problem: Problem, step: Step = Step.BLANKS) -> tuple[Any, ...]:
        if step is Step.SECOND:
            return (problem.data["result"],) if self.second_step else ()
        return problem.data["answers"]


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    """Manual clock starting at zero."""
    return ManualClock()


@pytest.fixture
def scheduler(clock):
    """Timer scheduler driven by the manual clock."""
    return TimerScheduler(clock)


@pytest.fixture
def stub_source():
    """Single-blank stub source."""
    return StubSource()


@pytest.fixture
def two_step_source():
    """Two-blank stub source with a second step."""
    return StubSource(slots=2, second_step=True)


@pytest.fixture
def make_settings():
    """Factory for session settings with overrides."""
    def _make(**overrides) -> SessionSettings:
        return SessionSettings(**overrides)
    return _make


@pytest.fixture
def stub_factory():
    """Build stub sources with custom slot counts."""
    return StubSource
