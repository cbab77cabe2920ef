"""
Per-question countdown.

Whole-second countdown from a fixed duration. Paused time does not count.
The clock is injectable (monotonic seconds).
"""

import math
import time
from collections.abc import Callable

from src.domain import constants

URGENCY_CRITICAL_SECONDS = 30
URGENCY_WARNING_SECONDS = 60


def format_time(seconds: float) -> str:
    """
    Seconds → "m:ss".

    >>> format_time(125)
    '2:05'
    """
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


class QuestionTimer:
    """
    Countdown for one interview question.

    Usage:
        timer = QuestionTimer(180)
        timer.start()
        ...
        if timer.is_expired:
            submit()
    """

    def __init__(
        self,
        duration: int = constants.DEFAULT_QUESTION_TIME_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        self.duration = duration
        self._clock = clock
        self._started_at: float | None = None
        self._paused_at: float | None = None
        self._paused_total = 0.0

    def start(self, at: float | None = None) -> None:
        """
        (Re)start from the full duration.

        Args:
            at: start instant on the timer's clock (default: now)
        """
        self._started_at = self._clock() if at is None else at
        self._paused_at = None
        self._paused_total = 0.0

    def pause(self) -> None:
        if self._started_at is None or self._paused_at is not None:
            return
        self._paused_at = self._clock()

    def resume(self) -> None:
        if self._paused_at is None:
            return
        self._paused_total += self._clock() - self._paused_at
        self._paused_at = None

    @property
    def is_paused(self) -> bool:
        return self._paused_at is not None

    @property
    def elapsed(self) -> float:
        """Seconds counted so far, paused time excluded."""
        if self._started_at is None:
            return 0.0
        now = self._paused_at if self._paused_at is not None else self._clock()
        return max(0.0, now - self._started_at - self._paused_total)

    @property
    def time_left(self) -> int:
        """Whole seconds remaining, never negative."""
        return max(0, self.duration - math.floor(self.elapsed))

    @property
    def is_expired(self) -> bool:
        return self._started_at is not None and self.time_left == 0

    @property
    def progress(self) -> float:
        """Percent of the duration elapsed (0-100)."""
        return (self.duration - self.time_left) / self.duration * 100

    @property
    def urgency(self) -> str:
        """critical (≤30s) / warning (≤60s) / normal."""
        left = self.time_left
        if left <= URGENCY_CRITICAL_SECONDS:
            return "critical"
        if left <= URGENCY_WARNING_SECONDS:
            return "warning"
        return "normal"

    def to_dict(self) -> dict:
        return {
            "duration": self.duration,
            "time_left": self.time_left,
            "formatted": format_time(self.time_left),
            "progress": round(self.progress, 2),
            "urgency": self.urgency,
            "is_expired": self.is_expired,
            "is_paused": self.is_paused,
        }
