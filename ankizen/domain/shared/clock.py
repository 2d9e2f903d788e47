"""Clock providers.

Every operation reads "today" once from a clock so day-boundary comparisons
cannot shift while it runs. Tests inject a FixedClock.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Source of the current day and instant."""

    def today(self) -> date: ...

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in the local time zone.

    Due dates are calendar days as the learner sees them, so "today" follows
    the local date rather than the UTC one.
    """

    def today(self) -> date:
        return self.now().date()

    def now(self) -> datetime:
        return datetime.now().astimezone()


class FixedClock:
    """Clock frozen at a given instant, advanced manually."""

    def __init__(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = current.replace(tzinfo=UTC)
        self._current = current

    def today(self) -> date:
        return self._current.date()

    def now(self) -> datetime:
        return self._current

    def advance(self, days: int = 0, **kwargs: float) -> None:
        """Move the clock forward."""
        self._current = self._current + timedelta(days=days, **kwargs)
