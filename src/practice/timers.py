"""
Cancellable timers for a single-threaded, host-driven event loop.

Nothing here spawns threads. A TimerScheduler keeps deadlines against a
clock function and fires due callbacks when the host calls run_pending().
Each CancellableTimer carries the epoch it was armed in; the owner bumps its
epoch on every state transition, so a callback from an earlier state is
dropped instead of acting on a stale problem.
"""

from __future__ import annotations

import heapq
import itertools
import time
from dataclasses import dataclass, field
from typing import Callable

from loguru import logger

Clock = Callable[[], float]


@dataclass(order=True)
class _Entry:
    deadline: float
    seq: int
    timer: "CancellableTimer" = field(compare=False)


class CancellableTimer:
    """Handle for one scheduled callback."""

    def __init__(
        self,
        name: str,
        callback: Callable[[], None],
        epoch: int,
        epoch_source: Callable[[], int],
        deadline: float,
    ):
        self.name = name
        self.epoch = epoch
        self.deadline = deadline
        self._callback = callback
        self._epoch_source = epoch_source
        self._cancelled = False
        self._fired = False

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True

    def fire(self) -> bool:
        """Run the callback if still armed and the epoch is current."""
        if not self.active:
            return False
        self._fired = True
        current = self._epoch_source()
        if current != self.epoch:
            logger.debug(f"Dropping stale timer '{self.name}' (epoch {self.epoch} != {current})")
            return False
        self._callback()
        return True


class TimerScheduler:
    """Deadline queue driven by the host loop."""

    def __init__(self, clock: Clock = time.monotonic):
        self.clock = clock
        self._queue: list[_Entry] = []
        self._seq = itertools.count()

    def call_later(
        self,
        delay: float,
        callback: Callable[[], None],
        *,
        name: str = "timer",
        epoch: int = 0,
        epoch_source: Callable[[], int] | None = None,
    ) -> CancellableTimer:
        deadline = self.clock() + max(0.0, delay)
        timer = CancellableTimer(
            name=name,
            callback=callback,
            epoch=epoch,
            epoch_source=epoch_source or (lambda: epoch),
            deadline=deadline,
        )
        heapq.heappush(self._queue, _Entry(deadline, next(self._seq), timer))
        return timer

    def seconds_until_next(self) -> float | None:
        """Delay until the earliest armed timer, or None if nothing is armed."""
        self._drop_inactive()
        if not self._queue:
            return None
        return max(0.0, self._queue[0].deadline - self.clock())

    def run_pending(self) -> int:
        """Fire every timer whose deadline has passed. Returns how many ran."""
        fired = 0
        now = self.clock()
        while self._queue and self._queue[0].deadline <= now:
            entry = heapq.heappop(self._queue)
            if entry.timer.fire():
                fired += 1
        return fired

    def cancel_all(self) -> None:
        for entry in self._queue:
            entry.timer.cancel()
        self._queue.clear()

    def _drop_inactive(self) -> None:
        while self._queue and not self._queue[0].timer.active:
            heapq.heappop(self._queue)


class ManualClock:
    """Controllable clock for tests and step-through hosts."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
