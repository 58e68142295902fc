# hookbin/utils/clock.py
"""
Clock abstraction for capture and creation timestamps.
Allows faking time in tests.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Abstract clock interface."""

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""

    def timestamp(self) -> str:
        """ISO-8601 with a fixed microsecond field so stored text sorts chronologically."""
        return self.now().isoformat(timespec="microseconds")


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc)


class FakeClock(Clock):
    """
    Fake clock for testing.
    Time can be set and advanced manually.
    """

    def __init__(self, initial: datetime | None = None):
        if initial is None:
            initial = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
        self._current = initial

    def now(self) -> datetime:
        return self._current

    def set(self, dt: datetime) -> None:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        self._current = dt

    def advance_seconds(self, seconds: float) -> None:
        self._current += timedelta(seconds=seconds)
