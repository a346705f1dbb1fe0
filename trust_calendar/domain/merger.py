"""
Day activity merger.

Combines, for one calendar date:
- the stored calendar entry (override / holiday / custom event)
- the default Upass/Biyashna rule (only when no override or holiday exists)
- published events and trips
- active festivals

into the ordered list of activities the month grid renders.

Output order is fixed: primary status (holiday or fast status) first, then
custom event, events, trips, festivals. Multiples of one type keep their
input order.
"""
from datetime import date as Date
from typing import Dict, Iterable, List, Optional, Sequence

from .models import (
    ActivityType,
    CalendarEntry,
    CalendarEntryType,
    DayActivity,
    Event,
    FastStatus,
    Festival,
    SunTimes,
    Trip,
)
from .status_rule import DEFAULT_RULE, StatusRule


_FAST_ENTRY_TYPES = {
    CalendarEntryType.UPASS: FastStatus.UPASS,
    CalendarEntryType.BIYASHNA: FastStatus.BIYASHNA,
}

_FAST_ACTIVITY_TYPES = {
    FastStatus.UPASS: ActivityType.UPASS,
    FastStatus.BIYASHNA: ActivityType.BIYASHNA,
}


def has_fixed_primary(entry: Optional[CalendarEntry]) -> bool:
    """True when the entry decides the primary activity (holiday or fast-status override)."""
    if entry is None:
        return False
    return entry.entry_type is CalendarEntryType.HOLIDAY or entry.entry_type in _FAST_ENTRY_TYPES


def _primary_activity(
    day: Date,
    entry: Optional[CalendarEntry],
    rule: StatusRule,
    sun_times: Optional[SunTimes],
) -> DayActivity:
    if entry is not None and entry.entry_type is CalendarEntryType.HOLIDAY:
        return DayActivity(
            type=ActivityType.HOLIDAY,
            id=entry.id,
            title=entry.title or "Holiday",
            description=entry.reason or entry.description,
        )

    if entry is not None and entry.entry_type in _FAST_ENTRY_TYPES:
        status = _FAST_ENTRY_TYPES[entry.entry_type]
        return DayActivity(
            type=_FAST_ACTIVITY_TYPES[status],
            id=entry.id,
            title=status.label,
            description=entry.description,
            is_default=False,
            sun_times=entry.sun_times,
        )

    # No entry, a custom event, or a kind this version does not know
    status = rule.compute_default_status(day)
    return DayActivity(
        type=_FAST_ACTIVITY_TYPES[status],
        id=f"default-{day.isoformat()}",
        title=status.label,
        description="Default schedule",
        is_default=True,
        sun_times=sun_times,
    )


def merge_activities_for_date(
    day: Date,
    calendar_entry: Optional[CalendarEntry],
    events: Iterable[Event],
    trips: Iterable[Trip],
    festivals: Iterable[Festival],
    rule: StatusRule = DEFAULT_RULE,
    sun_times: Optional[SunTimes] = None,
) -> List[DayActivity]:
    """
    Merge every activity for a single date.

    Args:
        day: Date being rendered
        calendar_entry: Stored entry for this date, or None
        events: Published events (unpublished ones are skipped)
        trips: Published trips (unpublished ones are skipped)
        festivals: Festivals (inactive ones are skipped)
        rule: Default status rule, used only when no override/holiday exists
        sun_times: Best-effort sun times for the computed default status

    Returns:
        Non-empty list of DayActivity; the first element is always primary
    """
    activities = [_primary_activity(day, calendar_entry, rule, sun_times)]

    if calendar_entry is not None and calendar_entry.entry_type is CalendarEntryType.CUSTOM_EVENT:
        activities.append(DayActivity(
            type=ActivityType.CUSTOM_EVENT,
            id=calendar_entry.id,
            title=calendar_entry.title or "Custom Event",
            description=calendar_entry.description,
        ))

    for event in events:
        if event.is_published and event.date == day:
            activities.append(DayActivity(
                type=ActivityType.EVENT,
                id=event.id,
                title=event.title,
                description=event.description,
            ))

    for trip in trips:
        if trip.is_published and trip.covers(day):
            activities.append(DayActivity(
                type=ActivityType.TRIP,
                id=trip.id,
                title=trip.title,
                description=trip.description,
            ))

    for festival in festivals:
        if festival.is_active and festival.occurs_on(day):
            activities.append(DayActivity(
                type=ActivityType.FESTIVAL,
                id=festival.id,
                title=festival.name,
                description=festival.description,
            ))

    return activities


def index_entries_by_date(entries: Iterable[CalendarEntry]) -> Dict[Date, CalendarEntry]:
    """
    Map entries by date for per-cell lookups.

    Raises:
        ValueError: If two entries share a date (the store enforces uniqueness)
    """
    indexed: Dict[Date, CalendarEntry] = {}
    for entry in entries:
        if entry.date in indexed:
            raise ValueError(f"Duplicate calendar entries for {entry.date}")
        indexed[entry.date] = entry
    return indexed


def primary_activity(activities: Sequence[DayActivity]) -> DayActivity:
    """Return the primary (status or holiday) activity of a merged day."""
    return activities[0]
