from __future__ import annotations

from datetime import date
from typing import Iterable

from ..common.datetime_utils import iter_dates
from ..core.constants import WEEK_OFF_SATURDAYS


class WorkingDayPolicy:
    """Decides which calendar days count against a leave balance.

    Sundays, the configured Saturdays of each month (2nd and 4th by default)
    and public holidays are not working days.
    """

    def __init__(self, holidays: Iterable[date] = (), *, week_off_saturdays: Iterable[int] = WEEK_OFF_SATURDAYS):
        self._holidays = frozenset(holidays)
        self._week_off_saturdays = frozenset(int(n) for n in week_off_saturdays)

    def is_week_off(self, day: date) -> bool:
        if day.weekday() == 6:
            return True
        if day.weekday() == 5:
            nth_saturday = (day.day - 1) // 7 + 1
            return nth_saturday in self._week_off_saturdays
        return False

    def is_working_day(self, day: date) -> bool:
        return not self.is_week_off(day) and day not in self._holidays

    def count_working_days(self, start_date: date, end_date: date) -> int:
        return sum(1 for d in iter_dates(start_date, end_date) if self.is_working_day(d))
