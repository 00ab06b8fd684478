"""
Clock Collaborator

The engine never reads the system time directly. Anything that needs
"today" takes a Clock, so tests can pin the date.
"""

from abc import ABC, abstractmethod
from datetime import date, timedelta


class Clock(ABC):

    @abstractmethod
    def now(self) -> date:
        """Current local calendar day."""
        pass


class SystemClock(Clock):

    def now(self) -> date:
        return date.today()


class FixedClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, today: date):
        self._today = today

    def now(self) -> date:
        return self._today

    def set(self, today: date) -> None:
        self._today = today

    def advance(self, days: int = 1) -> date:
        self._today = self._today + timedelta(days=days)
        return self._today
