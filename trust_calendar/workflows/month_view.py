"""
Month view workflow: load the four collections once, merge every grid cell.

Collections are loaded for the whole visible grid (leading/trailing days
from adjacent months included):
- calendar entries dated inside the grid
- published events dated inside the grid
- published trips overlapping the grid
- every active festival (recurring ones must be checked against any year)

Sun times are fetched concurrently, best-effort, only for days whose
primary status comes from the default rule.
"""
import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from ..domain.merger import has_fixed_primary, index_entries_by_date, merge_activities_for_date
from ..domain.models import DayActivity
from ..domain.month_grid import SUNDAY, month_grid_days
from ..domain.status_rule import DEFAULT_RULE, StatusRule
from ..domain.validation import validate_month
from ..repositories import CalendarEntryRepository, EventRepository, FestivalRepository, TripRepository
from ..sun_times import SunTimesProvider


logger = logging.getLogger(__name__)


@dataclass
class MonthView:
    """Merged activities for every cell of a month grid."""
    year: int
    month: int
    days: List[date] = field(default_factory=list)
    activities: Dict[date, List[DayActivity]] = field(default_factory=dict)

    def in_month(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    def activities_on(self, day: date) -> List[DayActivity]:
        return self.activities[day]

    def weeks(self) -> List[List[date]]:
        return [self.days[i:i + 7] for i in range(0, len(self.days), 7)]


class MonthViewBuilder:
    """Builds MonthView objects from the database."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        sun_provider: Optional[SunTimesProvider] = None,
        rule: StatusRule = DEFAULT_RULE,
        week_start: int = SUNDAY,
    ):
        """
        Args:
            conn: Open database connection
            sun_provider: Enrichment for default-status days (None = no sun times)
            rule: Default status rule
            week_start: First weekday of each grid row (0=Monday, 6=Sunday)
        """
        self.entries = CalendarEntryRepository(conn)
        self.events = EventRepository(conn)
        self.trips = TripRepository(conn)
        self.festivals = FestivalRepository(conn)
        self.sun_provider = sun_provider
        self.rule = rule
        self.week_start = week_start

    async def build(self, year: int, month: int) -> MonthView:
        """
        Compute the month view.

        Raises:
            ValueError: If year/month is invalid
        """
        is_valid, message = validate_month(year, month)
        if not is_valid:
            raise ValueError(message)

        days = month_grid_days(year, month, self.week_start)
        start, end = days[0], days[-1]

        entries = index_entries_by_date(self.entries.list_range(start, end))
        events = self.events.list_published_in_range(start, end)
        trips = self.trips.list_published_intersecting(start, end)
        festivals = self.festivals.list_active()

        sun_times = {}
        if self.sun_provider is not None:
            needing = [day for day in days if not has_fixed_primary(entries.get(day))]
            sun_times = await self.sun_provider.fetch_many(needing)

        view = MonthView(year=year, month=month, days=days)
        for day in days:
            view.activities[day] = merge_activities_for_date(
                day,
                entries.get(day),
                events,
                trips,
                festivals,
                rule=self.rule,
                sun_times=sun_times.get(day),
            )

        logger.debug(
            "Month view %04d-%02d: %d days, %d entries, %d events, %d trips, %d festivals",
            year, month, len(days), len(entries), len(events), len(trips), len(festivals),
        )
        return view

    def build_sync(self, year: int, month: int) -> MonthView:
        """Blocking wrapper for callers without an event loop (CLI)."""
        return asyncio.run(self.build(year, month))
