"""
Exceptions raised by the practice session layer.

Only contract violations propagate to the host application. Wrong answers,
exhausted retries and reveals are recorded outcomes, never exceptions.
"""


class PracticeError(Exception):
    """Base class for practice session errors."""


class ProblemContractError(PracticeError):
    """A ProblemSource returned data inconsistent with its own declarations."""

    def __init__(self, topic: str, message: str):
        self.topic = topic
        super().__init__(f"[{topic}] {message}")


class UnknownTopicError(PracticeError):
    """No ProblemSource is registered under the requested topic name."""

    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(f"Unknown topic: {topic}")


class SettingsError(PracticeError):
    """Settings could not be stored or are unusable."""
