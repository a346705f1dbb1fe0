"""
Repository/DAL Layer for SQLite Storage

- CalendarEntryRepository: one record per date, upsert keyed on date
- FestivalRepository: festival master data + active flag toggling
- EventRepository / TripRepository: published items read by the month view

Design Principles:
- All write operations wrapped in database transactions
- Uniqueness enforced via UNIQUE constraints (calendar_entries.date)
- Error handling: IntegrityError mapped to business exceptions
- No business logic: Pure data access layer
"""

import sqlite3
from datetime import date
from typing import List, Optional, Set, Tuple

from .db import transaction
from .domain.models import CalendarEntry, Event, Festival, Trip, parse_date


# ============================================================
# Custom Exceptions
# ============================================================

class RepositoryError(Exception):
    """Base exception for repository operations"""
    pass


class DuplicateKeyError(RepositoryError):
    """Raised when UNIQUE constraint is violated"""
    pass


class NotFoundError(RepositoryError):
    """Raised when entity not found"""
    pass


class BusinessRuleError(RepositoryError):
    """Raised when CHECK/NOT NULL constraint is violated"""
    pass


def _raise_mapped(exc: Exception, subject: str):
    """Translate a failed write into the repository exception hierarchy."""
    error_msg = str(exc).lower()
    if "unique" in error_msg:
        raise DuplicateKeyError(f"{subject} already exists") from exc
    if "check constraint" in error_msg or "not null" in error_msg:
        raise BusinessRuleError(f"Business rule violated for {subject}: {exc}") from exc
    raise RepositoryError(f"Write failed for {subject}: {exc}") from exc


# ============================================================
# Calendar Entry Repository
# ============================================================

class CalendarEntryRepository:
    """
    Repository for calendar_entries.

    Responsibilities:
    - Upsert keyed on date (admin override / holiday / custom event)
    - Range listing for month loads
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, day: date) -> Optional[CalendarEntry]:
        row = self.conn.execute("SELECT * FROM calendar_entries WHERE date = ?", (day.isoformat(),)).fetchone()
        return CalendarEntry.from_row(row) if row else None

    def upsert(self, entry: CalendarEntry) -> CalendarEntry:
        """
        Insert or replace the record for entry.date.

        Every content column is overwritten (a holiday replacing an
        override drops the cached sun times); created_at is kept.

        Returns:
            The stored entry as read back from the database

        Raises:
            BusinessRuleError: If a CHECK constraint is violated
        """
        if entry.entry_type is None:
            raise ValueError("Cannot store a calendar entry without a known entry_type")

        try:
            with transaction(self.conn) as cur:
                cur.execute(
                    """
                    INSERT INTO calendar_entries (
                        date, entry_type, is_manual_override, title, description, reason,
                        sunrise_time, sunset_time, created_by
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(date) DO UPDATE SET
                        entry_type = excluded.entry_type,
                        is_manual_override = excluded.is_manual_override,
                        title = excluded.title,
                        description = excluded.description,
                        reason = excluded.reason,
                        sunrise_time = excluded.sunrise_time,
                        sunset_time = excluded.sunset_time,
                        created_by = excluded.created_by,
                        updated_at = datetime('now')
                    """,
                    (
                        entry.date.isoformat(),
                        entry.entry_type.value,
                        1 if entry.is_manual_override else 0,
                        entry.title,
                        entry.description,
                        entry.reason,
                        entry.sunrise_time,
                        entry.sunset_time,
                        entry.created_by,
                    ),
                )
        except (RuntimeError, sqlite3.IntegrityError) as e:
            _raise_mapped(e, f"calendar entry {entry.date}")

        return self.get(entry.date)

    def list_range(self, start: date, end: date) -> List[CalendarEntry]:
        """Entries with start <= date <= end, ordered by date."""
        rows = self.conn.execute(
            "SELECT * FROM calendar_entries WHERE date >= ? AND date <= ? ORDER BY date",
            (start.isoformat(), end.isoformat()),
        ).fetchall()
        return [CalendarEntry.from_row(row) for row in rows]


# ============================================================
# Festival Repository
# ============================================================

class FestivalRepository:
    """Repository for festivals (created once, then only activated/deactivated)."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def add(self, festival: Festival) -> Festival:
        try:
            with transaction(self.conn) as cur:
                cur.execute(
                    """
                    INSERT INTO festivals (
                        name, date, description, is_recurring, recurrence_pattern, is_active, created_by
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        festival.name,
                        festival.date.isoformat(),
                        festival.description,
                        1 if festival.is_recurring else 0,
                        festival.recurrence_pattern,
                        1 if festival.is_active else 0,
                        festival.created_by,
                    ),
                )
                festival_id = cur.lastrowid
        except (RuntimeError, sqlite3.IntegrityError) as e:
            _raise_mapped(e, f"festival '{festival.name}'")

        return self.get(festival_id)

    def get(self, festival_id) -> Festival:
        row = self.conn.execute("SELECT * FROM festivals WHERE id = ?", (festival_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Festival {festival_id} not found")
        return Festival.from_row(row)

    def list_active(self) -> List[Festival]:
        """All active festivals ordered by stored date (not filtered by month)."""
        rows = self.conn.execute(
            "SELECT * FROM festivals WHERE is_active = 1 ORDER BY date, id"
        ).fetchall()
        return [Festival.from_row(row) for row in rows]

    def existing_keys(self) -> Set[Tuple[str, date]]:
        """(name, date) of every stored festival, active or not."""
        rows = self.conn.execute("SELECT name, date FROM festivals").fetchall()
        return {(row["name"], parse_date(row["date"])) for row in rows}

    def set_active(self, festival_id, is_active: bool) -> Festival:
        """
        Toggle the soft-delete flag.

        Raises:
            NotFoundError: If the festival does not exist
        """
        with transaction(self.conn) as cur:
            cur.execute(
                "UPDATE festivals SET is_active = ? WHERE id = ?",
                (1 if is_active else 0, festival_id),
            )
            updated = cur.rowcount
        if updated == 0:
            raise NotFoundError(f"Festival {festival_id} not found")
        return self.get(festival_id)


# ============================================================
# Event / Trip Repositories
# ============================================================

class EventRepository:
    """Events are owned by the events module; the calendar only reads published ones."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def add(self, event: Event) -> int:
        try:
            with transaction(self.conn) as cur:
                cur.execute(
                    "INSERT INTO events (title, date, description, is_published) VALUES (?, ?, ?, ?)",
                    (event.title, event.date.isoformat(), event.description, 1 if event.is_published else 0),
                )
                return cur.lastrowid
        except (RuntimeError, sqlite3.IntegrityError) as e:
            _raise_mapped(e, f"event '{event.title}'")

    def list_published_in_range(self, start: date, end: date) -> List[Event]:
        rows = self.conn.execute(
            """
            SELECT * FROM events
            WHERE is_published = 1 AND date >= ? AND date <= ?
            ORDER BY date, id
            """,
            (start.isoformat(), end.isoformat()),
        ).fetchall()
        return [Event.from_row(row) for row in rows]


class TripRepository:
    """Trips are owned by the trips module; the calendar only reads published ones."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def add(self, trip: Trip) -> int:
        try:
            with transaction(self.conn) as cur:
                cur.execute(
                    """
                    INSERT INTO trips (title, start_date, end_date, description, is_published)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        trip.title,
                        trip.start_date.isoformat(),
                        trip.end_date.isoformat(),
                        trip.description,
                        1 if trip.is_published else 0,
                    ),
                )
                return cur.lastrowid
        except (RuntimeError, sqlite3.IntegrityError) as e:
            _raise_mapped(e, f"trip '{trip.title}'")

    def list_published_intersecting(self, start: date, end: date) -> List[Trip]:
        """Published trips whose [start_date, end_date] overlaps [start, end]."""
        rows = self.conn.execute(
            """
            SELECT * FROM trips
            WHERE is_published = 1 AND start_date <= ? AND end_date >= ?
            ORDER BY start_date, id
            """,
            (end.isoformat(), start.isoformat()),
        ).fetchall()
        return [Trip.from_row(row) for row in rows]
