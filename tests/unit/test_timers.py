"""
Unit tests for the host-driven timer scheduler.

Run: pytest tests/unit/test_timers.py -v
"""

from src.practice.timers import ManualClock, TimerScheduler


class TestTimerScheduler:
    """Deadline firing on a manual clock."""

    def test_fires_when_due(self):
        clock = ManualClock()
        scheduler = TimerScheduler(clock)
        fired = []
        scheduler.call_later(5, lambda: fired.append("a"))

        clock.advance(4.9)
        assert scheduler.run_pending() == 0
        clock.advance(0.1)
        assert scheduler.run_pending() == 1
        assert fired == ["a"]

    def test_fires_in_deadline_order(self):
        clock = ManualClock()
        scheduler = TimerScheduler(clock)
        fired = []
        scheduler.call_later(3, lambda: fired.append("late"))
        scheduler.call_later(1, lambda: fired.append("early"))

        clock.advance(5)
        scheduler.run_pending()

        assert fired == ["early", "late"]

    def test_fires_once(self):
        clock = ManualClock()
        scheduler = TimerScheduler(clock)
        fired = []
        timer = scheduler.call_later(1, lambda: fired.append(1))

        clock.advance(2)
        scheduler.run_pending()
        scheduler.run_pending()

        assert fired == [1]
        assert not timer.active

    def test_cancelled_timer_does_not_fire(self):
        clock = ManualClock()
        scheduler = TimerScheduler(clock)
        fired = []
        timer = scheduler.call_later(1, lambda: fired.append(1))

        timer.cancel()
        clock.advance(2)

        assert scheduler.run_pending() == 0
        assert fired == []

    def test_stale_epoch_is_dropped(self):
        clock = ManualClock()
        scheduler = TimerScheduler(clock)
        epoch = {"value": 1}
        fired = []
        scheduler.call_later(1, lambda: fired.append(1), epoch=1, epoch_source=lambda: epoch["value"])

        epoch["value"] = 2
        clock.advance(1)

        assert scheduler.run_pending() == 0
        assert fired == []

    def test_seconds_until_next(self):
        clock = ManualClock()
        scheduler = TimerScheduler(clock)
        assert scheduler.seconds_until_next() is None

        first = scheduler.call_later(2, lambda: None)
        scheduler.call_later(5, lambda: None)
        clock.advance(0.5)
        assert scheduler.seconds_until_next() == 1.5

        first.cancel()
        assert scheduler.seconds_until_next() == 4.5

    def test_cancel_all(self):
        clock = ManualClock()
        scheduler = TimerScheduler(clock)
        fired = []
        scheduler.call_later(1, lambda: fired.append(1))
        scheduler.call_later(2, lambda: fired.append(2))

        scheduler.cancel_all()
        clock.advance(5)

        assert scheduler.run_pending() == 0
        assert scheduler.seconds_until_next() is None
