"""
Centralized validation rules for calendar administration input.

Each validator returns (is_valid, error_message).
"""
from typing import Optional, Tuple

MAX_TITLE_LENGTH = 200


def validate_title(title: Optional[str], what: str = "Title") -> Tuple[bool, str]:
    """
    Validate a required free-text title (holiday, custom event, festival name).

    Args:
        title: Text entered by the administrator
        what: Field label used in the message
    """
    if title is None or not title.strip():
        return False, f"{what} cannot be empty"

    if len(title.strip()) > MAX_TITLE_LENGTH:
        return False, f"{what} cannot exceed {MAX_TITLE_LENGTH} characters"

    return True, ""


def validate_month(year: int, month: int) -> Tuple[bool, str]:
    """Validate a year/month pair for the month view."""
    if not (1 <= month <= 12):
        return False, f"Month must be between 1 and 12, got {month}"
    if not (1 <= year <= 9999):
        return False, f"Year out of range: {year}"
    return True, ""
