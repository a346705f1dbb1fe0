"""
Presentation tokens for activity types.

Stable type -> token contract for the month grid. Unknown types get a
neutral default instead of raising.
"""
from typing import Union

from .models import ActivityType


DEFAULT_COLOR = "#6B7280"  # Gray
DEFAULT_ICON = "Calendar"

ACTIVITY_COLORS = {
    ActivityType.UPASS: "#00A36C",         # Emerald green
    ActivityType.BIYASHNA: "#B8860B",      # Gold
    ActivityType.HOLIDAY: "#EF4444",       # Red
    ActivityType.EVENT: "#3B82F6",         # Blue
    ActivityType.TRIP: "#8B5CF6",          # Purple
    ActivityType.FESTIVAL: "#F59E0B",      # Amber
    ActivityType.CUSTOM_EVENT: "#06B6D4",  # Cyan
}

# Lucide icon names
ACTIVITY_ICONS = {
    ActivityType.UPASS: "Calendar",
    ActivityType.BIYASHNA: "Calendar",
    ActivityType.HOLIDAY: "X",
    ActivityType.EVENT: "PartyPopper",
    ActivityType.TRIP: "Plane",
    ActivityType.FESTIVAL: "Sparkles",
    ActivityType.CUSTOM_EVENT: "Plus",
}


def _as_activity_type(value: Union[ActivityType, str, None]):
    if isinstance(value, ActivityType):
        return value
    try:
        return ActivityType(value)
    except ValueError:
        return None


def get_activity_color(activity_type: Union[ActivityType, str, None]) -> str:
    """Hex color for an activity type (gray for anything unknown)."""
    return ACTIVITY_COLORS.get(_as_activity_type(activity_type), DEFAULT_COLOR)


def get_activity_icon(activity_type: Union[ActivityType, str, None]) -> str:
    """Icon name for an activity type ("Calendar" for anything unknown)."""
    return ACTIVITY_ICONS.get(_as_activity_type(activity_type), DEFAULT_ICON)
