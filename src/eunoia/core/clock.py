"""Injectable time sources.

Anything that depends on "now" or "today" (habit streaks, upcoming
reminders, overdue tasks, generated sample data) asks a :class:`Clock`
instead of the system, so tests can pin time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo


class Clock(ABC):
    """Source of the current instant.

    Attributes:
        tz: Time zone that defines calendar days for :meth:`today` and
            :meth:`local_date`. Stored instants are always UTC.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz: tzinfo = tz or timezone.utc

    @abstractmethod
    def now(self) -> datetime:
        """Return the current instant as an aware UTC datetime."""

    def today(self) -> date:
        return self.local_date(self.now())

    def local_date(self, instant: datetime) -> date:
        """Calendar day of ``instant`` in this clock's time zone."""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz).date()


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """A clock that only moves when told to.

    Example:
        >>> clock = FixedClock(datetime(2024, 3, 1, 9, tzinfo=timezone.utc))
        >>> clock.advance(days=1)
        >>> clock.today()
        datetime.date(2024, 3, 2)
    """

    def __init__(self, instant: datetime, tz: tzinfo | None = None) -> None:
        super().__init__(tz)
        self.set(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant.astimezone(timezone.utc)

    def advance(self, **delta: float) -> None:
        """Move forward by a ``timedelta(**delta)``."""
        self._instant = self._instant + timedelta(**delta)
