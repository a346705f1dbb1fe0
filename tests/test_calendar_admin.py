"""
Tests for calendar administration (overrides, holidays, custom events, festivals).

Sun times never come from the network here: providers run with the web
service disabled, so cached values come from the offline calculation.
"""
import asyncio
import shutil
import tempfile
from dataclasses import replace
from datetime import date
from pathlib import Path

import pytest

from trust_calendar.db import initialize_database
from trust_calendar.domain.festivals import FestivalRegistry
from trust_calendar.domain.models import ActivityType, CalendarEntryType, Event, FastStatus, Festival, Trip
from trust_calendar.repositories import EventRepository, NotFoundError, TripRepository
from trust_calendar.settings import DEFAULT_SETTINGS
from trust_calendar.sun_times import SunTimesProvider, calculate_sun_times
from trust_calendar.workflows import CalendarAdminWorkflow, CalendarValidationError, MonthViewBuilder


@pytest.fixture
def temp_dir():
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir)


@pytest.fixture
def conn(temp_dir):
    connection = initialize_database(temp_dir / "calendar.db")
    yield connection
    connection.close()


@pytest.fixture
def offline_provider():
    return SunTimesProvider(replace(DEFAULT_SETTINGS, sun_api_enabled=False))


@pytest.fixture
def workflow(conn, offline_provider):
    return CalendarAdminWorkflow(conn, sun_provider=offline_provider)


class TestOverrideStatus:

    def test_override_is_stored_with_sun_times(self, workflow):
        day = date(2025, 3, 10)  # Upass by default

        entry = asyncio.run(workflow.override_status(day, FastStatus.BIYASHNA, actor="admin-1"))

        expected = calculate_sun_times(day)
        assert entry.entry_type == CalendarEntryType.BIYASHNA
        assert entry.is_manual_override is True
        assert entry.created_by == "admin-1"
        assert entry.sunrise_time == expected.sunrise
        assert entry.sunset_time == expected.sunset

    def test_override_wins_over_default_rule(self, workflow):
        day = date(2025, 3, 10)
        asyncio.run(workflow.override_status(day, FastStatus.BIYASHNA))

        primary = asyncio.run(workflow.day_details(day))[0]

        assert primary.type == ActivityType.BIYASHNA
        assert primary.is_default is False
        assert primary.sun_times == calculate_sun_times(day)

    def test_override_without_provider_has_no_sun_times(self, conn):
        workflow = CalendarAdminWorkflow(conn)
        entry = asyncio.run(workflow.override_status(date(2025, 3, 10), FastStatus.UPASS))
        assert entry.sunrise_time is None
        assert entry.sunset_time is None


class TestMarkHoliday:

    def test_holiday_replaces_status_and_notifies(self, conn):
        notified = []
        workflow = CalendarAdminWorkflow(conn, notifier=notified.append)
        day = date(2025, 3, 10)

        entry = workflow.mark_holiday(day, "  Trust closed  ", reason="Annual maintenance", actor="admin-1")

        assert entry.entry_type == CalendarEntryType.HOLIDAY
        assert entry.is_manual_override is True
        assert entry.title == "Trust closed"
        assert notified == [entry]

        activities = asyncio.run(workflow.day_details(day))
        assert activities[0].type == ActivityType.HOLIDAY
        assert activities[0].description == "Annual maintenance"
        assert not any(a.type in (ActivityType.UPASS, ActivityType.BIYASHNA) for a in activities)

    def test_holiday_over_existing_override(self, workflow):
        day = date(2025, 3, 10)
        asyncio.run(workflow.override_status(day, FastStatus.BIYASHNA))

        entry = workflow.mark_holiday(day, "Closed")

        assert entry.entry_type == CalendarEntryType.HOLIDAY
        assert entry.sunrise_time is None

    def test_failing_notifier_does_not_undo_holiday(self, conn):
        def broken_notifier(entry):
            raise ConnectionError("push service down")

        workflow = CalendarAdminWorkflow(conn, notifier=broken_notifier)
        workflow.mark_holiday(date(2025, 3, 10), "Closed")

        assert workflow.entries.get(date(2025, 3, 10)).entry_type == CalendarEntryType.HOLIDAY

    @pytest.mark.parametrize("title", ["", "   ", None, "x" * 201])
    def test_invalid_title_rejected(self, workflow, title):
        with pytest.raises(CalendarValidationError):
            workflow.mark_holiday(date(2025, 3, 10), title)
        assert workflow.entries.get(date(2025, 3, 10)) is None


class TestCustomEvent:

    def test_custom_event_keeps_default_status(self, workflow):
        day = date(2025, 3, 11)  # Biyashna by default

        entry = asyncio.run(workflow.add_custom_event(day, "Blood donation camp", description="Hall B"))
        activities = asyncio.run(workflow.day_details(day))

        assert entry.entry_type == CalendarEntryType.CUSTOM_EVENT
        assert entry.is_manual_override is False
        assert entry.sunrise_time is not None
        assert activities[0].type == ActivityType.BIYASHNA
        assert activities[0].is_default is True
        assert activities[1].type == ActivityType.CUSTOM_EVENT
        assert activities[1].title == "Blood donation camp"
        assert activities[1].description == "Hall B"

    def test_empty_title_rejected(self, workflow):
        with pytest.raises(CalendarValidationError):
            asyncio.run(workflow.add_custom_event(date(2025, 3, 11), "  "))


class TestFestivals:

    def test_add_recurring_festival(self, workflow):
        festival = workflow.add_festival("Paryushan", date(2024, 9, 15), recurring=True, actor="admin-1")

        assert festival.recurrence_pattern == "annual"
        assert festival.created_by == "admin-1"

        activities = asyncio.run(workflow.day_details(date(2025, 9, 15)))
        assert [a.title for a in activities if a.type == ActivityType.FESTIVAL] == ["Paryushan"]

    def test_deactivated_festival_disappears(self, workflow):
        festival = workflow.add_festival("Fair", date(2025, 3, 10))

        workflow.deactivate_festival(festival.id)
        assert not any(a.type == ActivityType.FESTIVAL for a in asyncio.run(workflow.day_details(date(2025, 3, 10))))

        workflow.activate_festival(festival.id)
        assert any(a.type == ActivityType.FESTIVAL for a in asyncio.run(workflow.day_details(date(2025, 3, 10))))

    def test_deactivate_missing_festival(self, workflow):
        with pytest.raises(NotFoundError):
            workflow.deactivate_festival(12345)

    def test_empty_name_rejected(self, workflow):
        with pytest.raises(CalendarValidationError):
            workflow.add_festival("", date(2025, 3, 10))

    def test_seed_is_idempotent(self, workflow):
        registry = FestivalRegistry([
            Festival(name="Mahavir Jayanti", date=date(2025, 4, 10), is_recurring=True, recurrence_pattern="annual"),
            Festival(name="Founders Fair", date=date(2025, 12, 1)),
        ])

        first = workflow.seed_festivals(registry, actor="seed")
        second = workflow.seed_festivals(registry, actor="seed")

        assert [f.name for f in first] == ["Mahavir Jayanti", "Founders Fair"]
        assert second == []
        assert len(workflow.festivals.list_active()) == 2


class TestDayDetails:

    def test_full_day(self, workflow, conn):
        day = date(2025, 3, 10)
        EventRepository(conn).add(Event(title="Satsang", date=day))
        TripRepository(conn).add(Trip(title="Pilgrimage", start_date=date(2025, 3, 8), end_date=date(2025, 3, 12)))
        workflow.add_festival("Local fair", day)

        activities = asyncio.run(workflow.day_details(day))

        assert [a.type for a in activities] == [
            ActivityType.UPASS,
            ActivityType.EVENT,
            ActivityType.TRIP,
            ActivityType.FESTIVAL,
        ]
        assert activities[0].id == "default-2025-03-10"
        assert activities[0].sun_times == calculate_sun_times(day)
        assert all(a.sun_times is None for a in activities[1:])

    def test_matches_month_view_cell(self, workflow, conn, offline_provider):
        # Given: an untouched day and a holiday
        day = date(2025, 3, 10)
        holiday = date(2025, 3, 14)
        workflow.mark_holiday(holiday, "Closed")

        # When
        view = MonthViewBuilder(conn, sun_provider=offline_provider).build_sync(2025, 3)

        # Then: the detail panel and the grid agree, sun times included
        assert asyncio.run(workflow.day_details(day)) == view.activities_on(day)
        assert asyncio.run(workflow.day_details(holiday)) == view.activities_on(holiday)
        assert asyncio.run(workflow.day_details(holiday))[0].sun_times is None

    def test_no_provider_means_no_sun_times(self, conn):
        activities = asyncio.run(CalendarAdminWorkflow(conn).day_details(date(2025, 3, 10)))
        assert activities[0].sun_times is None
