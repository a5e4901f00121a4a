"""Time sources for presence tracking."""

import time
from datetime import datetime, timedelta
from typing import Optional


class Clock:
    """Real clock: monotonic seconds for liveness, local time for display."""

    def now(self) -> float:
        return time.monotonic()

    def wall(self) -> datetime:
        return datetime.now()


class ManualClock(Clock):
    """Clock that only moves when told to, for simulated-time runs."""

    def __init__(self, start: float = 0.0, wall: Optional[datetime] = None) -> None:
        self._start = start
        self._now = start
        self._wall = wall or datetime(2024, 1, 1, 12, 0, 0)

    def now(self) -> float:
        return self._now

    def wall(self) -> datetime:
        return self._wall + timedelta(seconds=self._now - self._start)

    def advance(self, seconds: float) -> None:
        self._now += seconds
