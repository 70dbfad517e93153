"""
Cross-session progress aggregation.

Subscribes to ProgressEvents and keeps per-topic totals, average time,
the last difficulty used and a dated score history, plus a streak of
consecutive practice days. Stored as JSON at <data_dir>/progress/<user>.json.
"""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Callable

from loguru import logger

from .events import ProgressEvent, ProgressEventBus

CSV_HEADER = [
    "Operation",
    "Total Completed",
    "Correct Answers",
    "Success Rate",
    "Avg Time (s)",
    "Last Practiced",
    "Difficulty Level",
]


@dataclass
class HistoryEntry:
    date: str
    score: int
    difficulty: int


@dataclass
class TopicProgress:
    """Aggregated results for one topic."""

    topic: str
    total_completed: int = 0
    correct_answers: int = 0
    average_time: float = 0.0
    last_practiced: str = ""
    difficulty_level: int = 1
    history: list[HistoryEntry] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        if self.total_completed == 0:
            return 0.0
        return self.correct_answers / self.total_completed * 100

    @classmethod
    def from_dict(cls, data: dict) -> "TopicProgress":
        history = [HistoryEntry(**h) for h in data.get("history", [])]
        return cls(**{**data, "history": history})


@dataclass
class UserProgress:
    user_id: str
    topics: dict[str, TopicProgress] = field(default_factory=dict)
    streak_days: int = 0
    last_active: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "UserProgress":
        topics = {
            name: TopicProgress.from_dict(item)
            for name, item in data.get("topics", {}).items()
        }
        return cls(
            user_id=data["user_id"],
            topics=topics,
            streak_days=int(data.get("streak_days", 0)),
            last_active=data.get("last_active", ""),
        )


class ProgressStore:
    """Persistent aggregator fed by the session event bus."""

    def __init__(
        self,
        data_dir: Path,
        user_id: str = "default",
        today: Callable[[], date] = date.today,
    ):
        self.progress_dir = Path(data_dir) / "progress"
        self.user_id = user_id
        self._today = today
        self.progress = self._load()

    @property
    def path(self) -> Path:
        return self.progress_dir / f"{self.user_id}.json"

    def attach(self, bus: ProgressEventBus) -> Callable[[], None]:
        """Subscribe to a bus; returns the unsubscribe callable."""
        return bus.subscribe(self.record)

    def record(self, event: ProgressEvent) -> TopicProgress:
        """Fold one resolved problem into the aggregate and persist."""
        today = self._today()
        today_str = today.isoformat()
        existing = self.progress.topics.get(event.topic) or TopicProgress(
            topic=event.topic,
            last_practiced=today_str,
            difficulty_level=event.difficulty,
        )

        total = existing.total_completed + 1
        existing.average_time = (
            existing.average_time * existing.total_completed + event.time_spent_seconds
        ) / total
        existing.total_completed = total
        existing.correct_answers += 1 if event.correct else 0
        existing.last_practiced = today_str
        existing.difficulty_level = event.difficulty
        existing.history.append(
            HistoryEntry(date=today_str, score=1 if event.correct else 0, difficulty=event.difficulty)
        )
        self.progress.topics[event.topic] = existing

        self._update_streak(today)
        self.save()
        return existing

    def _update_streak(self, today: date) -> None:
        last = self.progress.last_active
        today_str = today.isoformat()
        if last == today_str:
            return
        yesterday = (today - timedelta(days=1)).isoformat()
        if last == yesterday:
            self.progress.streak_days += 1
        else:
            self.progress.streak_days = 1
        self.progress.last_active = today_str

    def export_csv(self) -> str:
        """Render per-topic totals as CSV."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for item in self.progress.topics.values():
            writer.writerow(
                [
                    item.topic,
                    item.total_completed,
                    item.correct_answers,
                    f"{item.success_rate:.2f}%",
                    f"{item.average_time:.2f}",
                    item.last_practiced,
                    item.difficulty_level,
                ]
            )
        return buffer.getvalue()

    def reset(self) -> None:
        self.progress = UserProgress(user_id=self.user_id, last_active=self._today().isoformat())
        self.save()

    def save(self) -> Path:
        self.progress_dir.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.progress.to_dict(), f, indent=2)
        return self.path

    def _load(self) -> UserProgress:
        if not self.path.exists():
            return UserProgress(user_id=self.user_id)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return UserProgress.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.error(f"Error parsing progress data for '{self.user_id}': {e}")
            return UserProgress(user_id=self.user_id)
