from __future__ import annotations

from datetime import date, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current timestamp and of the calendar-date boundary."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        raise NotImplementedError


class SystemClock:
    """Local wall clock; the date rolls over at local midnight."""

    def now(self) -> datetime:
        return datetime.now().replace(microsecond=0)

    def today(self) -> date:
        return self.now().date()
