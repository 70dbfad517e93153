"""Outbound progress notifications."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Callable

from loguru import logger


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted once per resolved problem for progress aggregation."""

    topic: str
    correct: bool
    time_spent_seconds: float
    difficulty: int
    attempts: int
    revealed: bool

    def to_dict(self) -> dict:
        return asdict(self)


ProgressHandler = Callable[[ProgressEvent], None]


class ProgressEventBus:
    """Fire-and-forget pub/sub for progress events."""

    def __init__(self) -> None:
        self._handlers: list[ProgressHandler] = []

    def subscribe(self, handler: ProgressHandler) -> Callable[[], None]:
        """Register a handler. Returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: ProgressEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                # A broken subscriber must not affect the session
                logger.exception(f"Progress handler {handler!r} failed for topic '{event.topic}'")
