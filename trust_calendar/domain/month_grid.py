"""
Month grid geometry.

A visible month is rendered as whole weeks: from the start of the week
containing the 1st through the end of the week containing the last day
(35 or 42 cells, 28 when February fits exactly in four weeks).
"""
import calendar
from datetime import date as Date, timedelta
from typing import List, Tuple

MONDAY = 0
SUNDAY = 6


def month_bounds(year: int, month: int) -> Tuple[Date, Date]:
    """First and last day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return Date(year, month, 1), Date(year, month, last_day)


def start_of_week(day: Date, week_start: int = SUNDAY) -> Date:
    """
    Start of the week containing day.

    Args:
        day: Any date
        week_start: Weekday that opens the week (0=Monday, 6=Sunday)
    """
    offset = (day.weekday() - week_start) % 7
    return day - timedelta(days=offset)


def end_of_week(day: Date, week_start: int = SUNDAY) -> Date:
    return start_of_week(day, week_start) + timedelta(days=6)


def grid_range(year: int, month: int, week_start: int = SUNDAY) -> Tuple[Date, Date]:
    """First and last date shown in the grid for a month."""
    first, last = month_bounds(year, month)
    return start_of_week(first, week_start), end_of_week(last, week_start)


def month_grid_days(year: int, month: int, week_start: int = SUNDAY) -> List[Date]:
    """All dates of the month grid, in display order."""
    start, end = grid_range(year, month, week_start)
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]
