"""
Adaptive practice sessions.

The session controller is topic-agnostic: a topic plugs in a ProblemSource
(generate / parse / grade) and the controller handles attempts, reveals,
difficulty escalation, compensation, timers and review.
"""

from .attempts import AttemptTracker
from .controller import (
    SessionController,
    SessionPhase,
    SessionState,
    SubmissionResult,
    SubmissionStatus,
)
from .difficulty import DifficultyAdapter
from .errors import PracticeError, ProblemContractError, SettingsError, UnknownTopicError
from .events import ProgressEvent, ProgressEventBus
from .ledger import ProblemRecord, ReviewNavigator, SessionLedger, SessionSummary, StepOutcome
from .problem_source import GradeResult, Problem, ProblemSource, Step
from .progress import ProgressStore
from .settings_store import SessionSettings, SettingsStore
from .timers import CancellableTimer, ManualClock, TimerScheduler

__all__ = [
    "AttemptTracker",
    "CancellableTimer",
    "DifficultyAdapter",
    "GradeResult",
    "ManualClock",
    "PracticeError",
    "Problem",
    "ProblemContractError",
    "ProblemRecord",
    "ProblemSource",
    "ProgressEvent",
    "ProgressEventBus",
    "ProgressStore",
    "ReviewNavigator",
    "SessionController",
    "SessionLedger",
    "SessionPhase",
    "SessionSettings",
    "SessionState",
    "SessionSummary",
    "SettingsError",
    "SettingsStore",
    "Step",
    "StepOutcome",
    "SubmissionResult",
    "SubmissionStatus",
    "TimerScheduler",
    "UnknownTopicError",
]
