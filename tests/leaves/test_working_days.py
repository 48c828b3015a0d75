from __future__ import annotations

from datetime import date

from workforce_system.leaves.working_days import WorkingDayPolicy


def test_sundays_are_off():
    policy = WorkingDayPolicy()

    assert not policy.is_working_day(date(2026, 3, 1))
    assert policy.is_working_day(date(2026, 3, 2))


def test_second_and_fourth_saturdays_are_off():
    policy = WorkingDayPolicy()

    # March 2026 Saturdays: 7, 14, 21, 28
    assert policy.is_working_day(date(2026, 3, 7))
    assert not policy.is_working_day(date(2026, 3, 14))
    assert policy.is_working_day(date(2026, 3, 21))
    assert not policy.is_working_day(date(2026, 3, 28))


def test_count_is_inclusive_and_skips_week_offs():
    policy = WorkingDayPolicy()

    assert policy.count_working_days(date(2026, 3, 2), date(2026, 3, 2)) == 1
    # Mon 9 .. Sun 15 with the 2nd Saturday off
    assert policy.count_working_days(date(2026, 3, 9), date(2026, 3, 15)) == 5
    # Mon 2 .. Sun 8 with the 1st Saturday worked
    assert policy.count_working_days(date(2026, 3, 2), date(2026, 3, 8)) == 6


def test_public_holidays_are_skipped():
    policy = WorkingDayPolicy([date(2026, 3, 4)])

    assert policy.count_working_days(date(2026, 3, 2), date(2026, 3, 6)) == 4


def test_range_of_only_days_off_counts_zero():
    policy = WorkingDayPolicy()

    assert policy.count_working_days(date(2026, 3, 14), date(2026, 3, 15)) == 0


def test_custom_saturday_rule():
    policy = WorkingDayPolicy(week_off_saturdays=())

    assert policy.is_working_day(date(2026, 3, 14))
