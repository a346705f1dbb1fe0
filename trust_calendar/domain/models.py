"""
Domain models for the trust calendar.

Pure data classes + value objects. No I/O, no side effects.
Deterministic and fully testable.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date as Date, datetime
from enum import Enum
from typing import Any, Mapping, Optional


logger = logging.getLogger(__name__)

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class CalendarEntryType(Enum):
    """Kinds of record an administrator can store against a date."""
    UPASS = "upass"                # Manual override: fast-type A
    BIYASHNA = "biyashna"          # Manual override: fast-type B
    HOLIDAY = "holiday"            # Trust closure (suppresses fast status)
    CUSTOM_EVENT = "custom_event"  # Ad-hoc admin event


class FastStatus(Enum):
    """Liturgical status produced by the default rule."""
    UPASS = "upass"
    BIYASHNA = "biyashna"

    @property
    def label(self) -> str:
        return "Upass" if self is FastStatus.UPASS else "Biyashna"


class ActivityType(Enum):
    """Everything the month grid can paint on a day."""
    UPASS = "upass"
    BIYASHNA = "biyashna"
    HOLIDAY = "holiday"
    EVENT = "event"
    TRIP = "trip"
    FESTIVAL = "festival"
    CUSTOM_EVENT = "custom_event"


PRIMARY_ACTIVITY_TYPES = frozenset({ActivityType.UPASS, ActivityType.BIYASHNA, ActivityType.HOLIDAY})


def parse_date(value: Any) -> Date:
    """
    Coerce a stored date value into a date.

    Accepts date, datetime, or an ISO string ("YYYY-MM-DD", optionally
    followed by a time part as returned by timestamp columns).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, Date):
        return value
    if isinstance(value, str):
        return Date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Cannot interpret {value!r} as a date")


@dataclass(frozen=True)
class SunTimes:
    """Sunrise/sunset clock times (local, 24-hour HH:MM)."""
    sunrise: str
    sunset: str

    def __post_init__(self):
        for label, value in (("sunrise", self.sunrise), ("sunset", self.sunset)):
            if not isinstance(value, str) or not _CLOCK_RE.match(value):
                raise ValueError(f"{label} must be HH:MM, got {value!r}")


@dataclass(frozen=True)
class CalendarEntry:
    """
    Administrator record for one calendar date (at most one per date).

    Attributes:
        date: Natural key of the record
        entry_type: Stored kind, or None when the stored value is not a known kind
        is_manual_override: Record supersedes the computed default permanently
        title/description/reason: Free text (holiday and custom events)
        sunrise_time/sunset_time: Cached HH:MM values captured at creation time
        created_by: Acting administrator (audit only)
    """
    date: Date
    entry_type: Optional[CalendarEntryType]
    is_manual_override: bool = False
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    reason: Optional[str] = None
    sunrise_time: Optional[str] = None
    sunset_time: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def sun_times(self) -> Optional[SunTimes]:
        """Cached sun times, only when both values are present and well formed."""
        if not self.sunrise_time or not self.sunset_time:
            return None
        try:
            return SunTimes(self.sunrise_time, self.sunset_time)
        except ValueError:
            logger.warning("Ignoring malformed cached sun times for %s", self.date)
            return None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CalendarEntry":
        """Build an entry from a store row (sqlite3.Row or dict)."""
        raw_type = row["entry_type"]
        try:
            entry_type = CalendarEntryType(raw_type)
        except ValueError:
            logger.warning("Unknown calendar entry type %r on %s, treating as no entry", raw_type, row["date"])
            entry_type = None

        keys = set(row.keys())

        def opt(name):
            value = row[name] if name in keys else None
            return str(value) if value is not None else None

        return cls(
            date=parse_date(row["date"]),
            entry_type=entry_type,
            is_manual_override=bool(row["is_manual_override"]) if "is_manual_override" in keys else False,
            id=opt("id"),
            title=opt("title"),
            description=opt("description"),
            reason=opt("reason"),
            sunrise_time=opt("sunrise_time"),
            sunset_time=opt("sunset_time"),
            created_by=opt("created_by"),
            created_at=opt("created_at"),
            updated_at=opt("updated_at"),
        )


@dataclass(frozen=True)
class Festival:
    """Named festival date, optionally repeating every year."""
    name: str
    date: Date
    description: Optional[str] = None
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None
    is_active: bool = True
    id: Optional[str] = None
    created_by: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Festival name must be a non-empty string")

    def occurs_on(self, day: Date) -> bool:
        """
        Check whether the festival falls on a given day.

        Rules:
        - non-recurring: exact date match
        - recurring: month/day match in the stored year and every year after
        - Feb 29 recurring festivals do not occur in non-leap years

        Activity (is_active) is not checked here; see the merger.
        """
        if not self.is_recurring:
            return day == self.date
        if day.year < self.date.year:
            return False
        # Feb 29 never matches a non-leap year because that date does not exist
        return day.month == self.date.month and day.day == self.date.day

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Festival":
        keys = set(row.keys())
        return cls(
            id=str(row["id"]) if "id" in keys and row["id"] is not None else None,
            name=row["name"],
            date=parse_date(row["date"]),
            description=row["description"] if "description" in keys else None,
            is_recurring=bool(row["is_recurring"]),
            recurrence_pattern=row["recurrence_pattern"] if "recurrence_pattern" in keys else None,
            is_active=bool(row["is_active"]) if "is_active" in keys else True,
            created_by=row["created_by"] if "created_by" in keys else None,
        )


@dataclass(frozen=True)
class Event:
    """Published event (read-only for the calendar)."""
    title: str
    date: Date
    description: Optional[str] = None
    is_published: bool = True
    id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Event":
        keys = set(row.keys())
        return cls(
            id=str(row["id"]) if "id" in keys and row["id"] is not None else None,
            title=row["title"],
            date=parse_date(row["date"]),
            description=row["description"] if "description" in keys else None,
            is_published=bool(row["is_published"]) if "is_published" in keys else True,
        )


@dataclass(frozen=True)
class Trip:
    """Published trip spanning an inclusive date range."""
    title: str
    start_date: Date
    end_date: Date
    description: Optional[str] = None
    is_published: bool = True
    id: Optional[str] = None

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError(f"Trip '{self.title}': start_date {self.start_date} > end_date {self.end_date}")

    def covers(self, day: Date) -> bool:
        return self.start_date <= day <= self.end_date

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Trip":
        keys = set(row.keys())
        return cls(
            id=str(row["id"]) if "id" in keys and row["id"] is not None else None,
            title=row["title"],
            start_date=parse_date(row["start_date"]),
            end_date=parse_date(row["end_date"]),
            description=row["description"] if "description" in keys else None,
            is_published=bool(row["is_published"]) if "is_published" in keys else True,
        )


@dataclass(frozen=True)
class DayActivity:
    """
    One renderable item for a calendar day (derived, never persisted).

    is_default is True only for a computed fast status with no stored
    entry behind it. sun_times is only set on upass/biyashna activities.
    """
    type: ActivityType
    title: str
    id: Optional[str] = None
    description: Optional[str] = None
    is_default: bool = False
    sun_times: Optional[SunTimes] = None

    @property
    def is_primary(self) -> bool:
        return self.type in PRIMARY_ACTIVITY_TYPES
