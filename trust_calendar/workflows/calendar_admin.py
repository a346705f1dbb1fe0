"""
Calendar administration workflow: overrides, holidays, custom events, festivals.

Every calendar-entry write is an upsert keyed on the date, so the newest
admin action for a day wins. Manual overrides are never touched by the
default status rule.
"""
import logging
import sqlite3
from datetime import date
from typing import Callable, List, Optional

from ..domain.festivals import FestivalRegistry
from ..domain.merger import has_fixed_primary, merge_activities_for_date
from ..domain.models import CalendarEntry, CalendarEntryType, DayActivity, FastStatus, Festival
from ..domain.status_rule import DEFAULT_RULE, StatusRule
from ..domain.validation import validate_title
from ..repositories import CalendarEntryRepository, EventRepository, FestivalRepository, TripRepository
from ..sun_times import SunTimesProvider


logger = logging.getLogger(__name__)

# Called after a holiday is stored; dispatching member notifications is external
HolidayNotifier = Callable[[CalendarEntry], None]


class CalendarValidationError(ValueError):
    """Raised when admin input fails validation."""
    pass


def _require_title(title: Optional[str], what: str) -> str:
    is_valid, message = validate_title(title, what)
    if not is_valid:
        raise CalendarValidationError(message)
    return title.strip()


class CalendarAdminWorkflow:
    """Admin actions on the calendar."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        sun_provider: Optional[SunTimesProvider] = None,
        notifier: Optional[HolidayNotifier] = None,
        rule: StatusRule = DEFAULT_RULE,
    ):
        """
        Args:
            conn: Open database connection
            sun_provider: Source of sun times (cached on overrides/custom events,
                          looked up for default days in day_details; None = none)
            notifier: Hook invoked after a holiday is marked
            rule: Default status rule used by day_details()
        """
        self.entries = CalendarEntryRepository(conn)
        self.festivals = FestivalRepository(conn)
        self.events = EventRepository(conn)
        self.trips = TripRepository(conn)
        self.sun_provider = sun_provider
        self.notifier = notifier
        self.rule = rule

    async def _sun_times_fields(self, day: date) -> dict:
        if self.sun_provider is None:
            return {}
        times = await self.sun_provider.fetch_best_effort(day)
        if times is None:
            return {}
        return {"sunrise_time": times.sunrise, "sunset_time": times.sunset}

    async def override_status(self, day: date, status: FastStatus, actor: Optional[str] = None) -> CalendarEntry:
        """
        Permanently set Upass/Biyashna for a date.

        Args:
            day: Date to override
            status: Status the administrator chose
            actor: Acting administrator id

        Returns:
            Stored CalendarEntry
        """
        entry_type = CalendarEntryType.UPASS if status is FastStatus.UPASS else CalendarEntryType.BIYASHNA
        entry = CalendarEntry(
            date=day,
            entry_type=entry_type,
            is_manual_override=True,
            created_by=actor,
            **await self._sun_times_fields(day),
        )
        stored = self.entries.upsert(entry)
        logger.info("Status for %s overridden to %s by %s", day, status.value, actor)
        return stored

    def mark_holiday(self, day: date, title: str, reason: Optional[str] = None, actor: Optional[str] = None) -> CalendarEntry:
        """
        Mark a trust-closure day.

        The holiday replaces any status for the date and is stored as a
        manual override. The notifier runs afterwards; a failing notifier
        is logged and does not undo the holiday.

        Raises:
            CalendarValidationError: If title is empty
        """
        title = _require_title(title, "Holiday title")
        stored = self.entries.upsert(CalendarEntry(
            date=day,
            entry_type=CalendarEntryType.HOLIDAY,
            is_manual_override=True,
            title=title,
            reason=reason.strip() if reason else None,
            created_by=actor,
        ))
        logger.info("Holiday '%s' marked on %s by %s", title, day, actor)

        if self.notifier is not None:
            try:
                self.notifier(stored)
            except Exception as e:
                logger.warning("Holiday notification for %s failed: %s", day, e)

        return stored

    async def add_custom_event(
        self,
        day: date,
        title: str,
        description: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> CalendarEntry:
        """
        Record an ad-hoc event on a date (sun times cached best-effort).

        Raises:
            CalendarValidationError: If title is empty
        """
        title = _require_title(title, "Event title")
        stored = self.entries.upsert(CalendarEntry(
            date=day,
            entry_type=CalendarEntryType.CUSTOM_EVENT,
            is_manual_override=False,
            title=title,
            description=description.strip() if description else None,
            created_by=actor,
            **await self._sun_times_fields(day),
        ))
        logger.info("Custom event '%s' added on %s by %s", title, day, actor)
        return stored

    def add_festival(
        self,
        name: str,
        day: date,
        description: Optional[str] = None,
        recurring: bool = False,
        actor: Optional[str] = None,
    ) -> Festival:
        """
        Register a festival (annual when recurring).

        Raises:
            CalendarValidationError: If name is empty
        """
        name = _require_title(name, "Festival name")
        festival = self.festivals.add(Festival(
            name=name,
            date=day,
            description=description.strip() if description else None,
            is_recurring=recurring,
            recurrence_pattern="annual" if recurring else None,
            is_active=True,
            created_by=actor,
        ))
        logger.info("Festival '%s' added for %s (recurring=%s)", name, day, recurring)
        return festival

    def seed_festivals(self, registry: FestivalRegistry, actor: Optional[str] = None) -> List[Festival]:
        """Insert every festival of a registry that is not stored yet (same name and date)."""
        existing = self.festivals.existing_keys()
        added = []
        for festival in registry.festivals:
            if (festival.name, festival.date) in existing:
                continue
            added.append(self.festivals.add(Festival(
                name=festival.name,
                date=festival.date,
                description=festival.description,
                is_recurring=festival.is_recurring,
                recurrence_pattern=festival.recurrence_pattern,
                is_active=festival.is_active,
                created_by=actor,
            )))
        return added

    def deactivate_festival(self, festival_id) -> Festival:
        festival = self.festivals.set_active(festival_id, False)
        logger.info("Festival %s deactivated", festival_id)
        return festival

    def activate_festival(self, festival_id) -> Festival:
        return self.festivals.set_active(festival_id, True)

    async def day_details(self, day: date) -> List[DayActivity]:
        """
        Merged activities for one date, as shown in the day detail panel.

        Sun times are looked up best-effort when the status comes from the
        default rule; overrides keep the values cached when they were set.
        """
        entry = self.entries.get(day)

        sun_times = None
        if self.sun_provider is not None and not has_fixed_primary(entry):
            sun_times = await self.sun_provider.fetch_best_effort(day)

        return merge_activities_for_date(
            day,
            entry,
            self.events.list_published_in_range(day, day),
            self.trips.list_published_intersecting(day, day),
            self.festivals.list_active(),
            rule=self.rule,
            sun_times=sun_times,
        )
