"""
Pure calendar domain: models, default status rule, merger, display tokens.
"""
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
from .status_rule import DEFAULT_RULE, AlternatingStatusRule, StatusRule, compute_default_status
from .merger import merge_activities_for_date
from .display import get_activity_color, get_activity_icon

__all__ = [
    "ActivityType",
    "CalendarEntry",
    "CalendarEntryType",
    "DayActivity",
    "Event",
    "FastStatus",
    "Festival",
    "SunTimes",
    "Trip",
    "DEFAULT_RULE",
    "AlternatingStatusRule",
    "StatusRule",
    "compute_default_status",
    "merge_activities_for_date",
    "get_activity_color",
    "get_activity_icon",
]
