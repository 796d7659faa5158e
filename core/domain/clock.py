"""
Clock port.

Every expiration comparison in the engine reads time through a Clock
so tests can move time without touching stored state.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of the current wall-clock time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        pass


class SystemClock(Clock):
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant until advanced explicitly."""

    def __init__(self, current: datetime):
        if current.tzinfo is None:
            raise ValueError("FixedClock requires an aware datetime")
        self._current = current

    def now(self) -> datetime:
        return self._current

    def advance(self, **kwargs) -> datetime:
        """
        Move the clock forward.

        Args:
            **kwargs: timedelta arguments (days, hours, seconds...)

        Returns:
            The new current time
        """
        self._current = self._current + timedelta(**kwargs)
        return self._current

    def set(self, current: datetime) -> None:
        """Jump to an arbitrary instant."""
        self._current = current
