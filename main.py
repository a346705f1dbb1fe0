#!/usr/bin/env python3
"""
Trust Calendar - command line entry point.

Examples:
    python main.py month 2025-03
    python main.py day 2025-03-10
    python main.py override 2025-03-11 upass
    python main.py holiday 2025-03-14 --title "Founder's Day" --reason "Trust closed"
    python main.py custom-event 2025-03-20 --title "Satsang"
    python main.py festival-add "Mahavir Jayanti" 2025-04-10 --recurring
    python main.py festival-deactivate 3
    python main.py festival-seed
"""
import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import config
from trust_calendar.db import initialize_database
from trust_calendar.domain.display import get_activity_color
from trust_calendar.domain.festivals import FestivalRegistry
from trust_calendar.domain.models import FastStatus
from trust_calendar.settings import load_settings
from trust_calendar.sun_times import SunTimesProvider
from trust_calendar.utils.error_formatting import ErrorFormatter, validate_date_format
from trust_calendar.utils.logging_config import setup_logging
from trust_calendar.workflows import CalendarAdminWorkflow, MonthViewBuilder


logger = logging.getLogger("trust_calendar.cli")


def _date_arg(value: str) -> date:
    is_valid, message = validate_date_format(value)
    if not is_valid:
        raise argparse.ArgumentTypeError(message)
    return date.fromisoformat(value.strip())


def _month_arg(value: str):
    try:
        year_str, month_str = value.strip().split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid month '{value}' (expected YYYY-MM)")
    if not (1 <= month <= 12):
        raise argparse.ArgumentTypeError(f"Invalid month '{value}' (expected YYYY-MM)")
    return year, month


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trust-calendar", description="Trust calendar administration")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path")
    parser.add_argument("--settings", type=Path, default=None, help="settings.json path")
    parser.add_argument("--offline", action="store_true", help="Do not query the sun times web service")
    parser.add_argument("--actor", default=config.DEFAULT_ACTOR, help="Administrator id recorded on changes")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("month", help="Show merged activities for a month grid")
    p.add_argument("month", type=_month_arg, help="YYYY-MM")

    p = sub.add_parser("day", help="Show merged activities for one date")
    p.add_argument("date", type=_date_arg)

    p = sub.add_parser("override", help="Permanently set Upass/Biyashna for a date")
    p.add_argument("date", type=_date_arg)
    p.add_argument("status", choices=[s.value for s in FastStatus])

    p = sub.add_parser("holiday", help="Mark a trust-closure day")
    p.add_argument("date", type=_date_arg)
    p.add_argument("--title", required=True)
    p.add_argument("--reason", default=None)

    p = sub.add_parser("custom-event", help="Add an ad-hoc event to a date")
    p.add_argument("date", type=_date_arg)
    p.add_argument("--title", required=True)
    p.add_argument("--description", default=None)

    p = sub.add_parser("festival-add", help="Register a festival")
    p.add_argument("name")
    p.add_argument("date", type=_date_arg)
    p.add_argument("--description", default=None)
    p.add_argument("--recurring", action="store_true", help="Repeat every year on the same month/day")

    p = sub.add_parser("festival-deactivate", help="Hide a festival from the calendar")
    p.add_argument("festival_id")

    p = sub.add_parser("festival-seed", help="Load festivals.json into the database")
    p.add_argument("--file", type=Path, default=config.FESTIVALS_FILE)

    return parser


def _print_activities(day, activities):
    print(day.isoformat())
    for activity in activities:
        marker = " (default)" if activity.is_default else ""
        sun = f"  ☀ {activity.sun_times.sunrise}-{activity.sun_times.sunset}" if activity.sun_times else ""
        print(f"  [{activity.type.value:<12}] {get_activity_color(activity.type)} {activity.title}{marker}{sun}")


def run(args) -> int:
    settings = load_settings(args.settings or config.SETTINGS_FILE)
    if args.offline:
        settings = replace(settings, sun_api_enabled=False)
    rule = settings.status_rule()
    provider = SunTimesProvider(settings)

    conn = initialize_database(args.db or config.DATABASE_PATH)
    try:
        if args.command == "month":
            year, month = args.month
            view = MonthViewBuilder(conn, provider, rule=rule, week_start=settings.week_start).build_sync(year, month)
            for day in view.days:
                if view.in_month(day):
                    _print_activities(day, view.activities_on(day))
            return 0

        admin = CalendarAdminWorkflow(conn, provider, rule=rule)

        if args.command == "day":
            _print_activities(args.date, asyncio.run(admin.day_details(args.date)))
        elif args.command == "override":
            asyncio.run(admin.override_status(args.date, FastStatus(args.status), args.actor))
            print(f"✓ Schedule updated for {args.date}")
        elif args.command == "holiday":
            admin.mark_holiday(args.date, args.title, args.reason, args.actor)
            print(f"✓ Holiday marked on {args.date}")
        elif args.command == "custom-event":
            asyncio.run(admin.add_custom_event(args.date, args.title, args.description, args.actor))
            print(f"✓ Custom event added on {args.date}")
        elif args.command == "festival-add":
            festival = admin.add_festival(args.name, args.date, args.description, args.recurring, args.actor)
            print(f"✓ Festival added (id {festival.id})")
        elif args.command == "festival-deactivate":
            admin.deactivate_festival(args.festival_id)
            print(f"✓ Festival {args.festival_id} deactivated")
        elif args.command == "festival-seed":
            added = admin.seed_festivals(FestivalRegistry.from_config(args.file), args.actor)
            print(f"✓ Festivals added: {len(added)}")
        return 0
    finally:
        conn.close()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        return run(args)
    except Exception as e:
        error = ErrorFormatter.format_admin_error(e, args.command, getattr(args, "date", None))
        logger.error(error.format_for_log())
        print(error.format_for_display(), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
