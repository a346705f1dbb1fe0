"""
Tests for month grid geometry.
"""
from datetime import date

from trust_calendar.domain.month_grid import (
    MONDAY,
    SUNDAY,
    grid_range,
    month_bounds,
    month_grid_days,
    start_of_week,
)


def test_month_bounds():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(2025, 2) == (date(2025, 2, 1), date(2025, 2, 28))


def test_march_2025_sunday_start():
    # Mar 1 2025 is a Saturday, Mar 31 a Monday
    days = month_grid_days(2025, 3)
    assert days[0] == date(2025, 2, 23)
    assert days[-1] == date(2025, 4, 5)
    assert len(days) == 42
    assert days[0].weekday() == SUNDAY


def test_march_2025_monday_start():
    start, end = grid_range(2025, 3, week_start=MONDAY)
    assert start == date(2025, 2, 24)
    assert end == date(2025, 4, 6)


def test_grid_is_contiguous_whole_weeks():
    for month in range(1, 13):
        days = month_grid_days(2025, month)
        assert len(days) % 7 == 0
        assert all((b - a).days == 1 for a, b in zip(days, days[1:]))
        assert date(2025, month, 1) in days


def test_february_2015_fits_four_weeks():
    days = month_grid_days(2015, 2)
    assert len(days) == 28
    assert days[0] == date(2015, 2, 1)


def test_start_of_week():
    wednesday = date(2025, 1, 1)
    assert start_of_week(wednesday) == date(2024, 12, 29)
    assert start_of_week(wednesday, MONDAY) == date(2024, 12, 30)
