"""
Calendar settings.

Defaults live here; a "calendar" section in settings.json overrides them:

    {
      "calendar": {
        "base_upass_date": "2025-01-01",
        "latitude": 12.9716,
        "longitude": 77.5946,
        "utc_offset_minutes": 330,
        "sun_api_enabled": true,
        "fallback_to_calculation": true,
        "week_start": 6
      }
    }

Invalid values are logged and ignored; a missing or unreadable file
yields the defaults.
"""
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path
from typing import Optional

from .domain.month_grid import SUNDAY
from .domain.status_rule import AlternatingStatusRule, BASE_UPASS_DATE


logger = logging.getLogger(__name__)

SUNRISE_SUNSET_API_URL = "https://api.sunrise-sunset.org/json"


@dataclass(frozen=True)
class Location:
    """Fixed observation point for sun times (defaults: Bengaluru, IST)."""
    latitude: float = 12.9716
    longitude: float = 77.5946
    utc_offset_minutes: int = 330

    def __post_init__(self):
        if not (-90.0 <= self.latitude <= 90.0):
            raise ValueError(f"Invalid latitude {self.latitude}")
        if not (-180.0 <= self.longitude <= 180.0):
            raise ValueError(f"Invalid longitude {self.longitude}")
        if not (-14 * 60 <= self.utc_offset_minutes <= 14 * 60):
            raise ValueError(f"Invalid UTC offset {self.utc_offset_minutes} minutes")


BENGALURU = Location()


@dataclass(frozen=True)
class CalendarSettings:
    """
    Runtime configuration for the calendar.

    Attributes:
        base_upass_date: Known Upass day anchoring the alternating rule
        location: Where sun times are computed for
        sun_api_url: Sunrise/sunset web service endpoint
        sun_api_timeout: Request timeout in seconds
        sun_api_enabled: Query the web service at all
        fallback_to_calculation: Use the offline solar calculation when the service fails
        week_start: First weekday of grid rows (0=Monday, 6=Sunday)
    """
    base_upass_date: date = BASE_UPASS_DATE
    location: Location = field(default_factory=Location)
    sun_api_url: str = SUNRISE_SUNSET_API_URL
    sun_api_timeout: float = 10.0
    sun_api_enabled: bool = True
    fallback_to_calculation: bool = True
    week_start: int = SUNDAY

    def status_rule(self) -> AlternatingStatusRule:
        return AlternatingStatusRule(base_date=self.base_upass_date)


DEFAULT_SETTINGS = CalendarSettings()


def _apply_section(settings: CalendarSettings, section: dict) -> CalendarSettings:
    """Overlay a settings.json "calendar" section, one key at a time."""
    for key, value in section.items():
        try:
            if key == "base_upass_date":
                settings = replace(settings, base_upass_date=date.fromisoformat(value))
            elif key in ("latitude", "longitude"):
                settings = replace(settings, location=replace(settings.location, **{key: float(value)}))
            elif key == "utc_offset_minutes":
                settings = replace(settings, location=replace(settings.location, utc_offset_minutes=int(value)))
            elif key == "sun_api_url":
                settings = replace(settings, sun_api_url=str(value))
            elif key == "sun_api_timeout":
                timeout = float(value)
                if timeout <= 0:
                    raise ValueError("timeout must be positive")
                settings = replace(settings, sun_api_timeout=timeout)
            elif key in ("sun_api_enabled", "fallback_to_calculation"):
                if not isinstance(value, bool):
                    raise ValueError("expected true/false")
                settings = replace(settings, **{key: value})
            elif key == "week_start":
                week_start = int(value)
                if not (0 <= week_start <= 6):
                    raise ValueError("expected 0..6")
                settings = replace(settings, week_start=week_start)
            else:
                logger.warning("Unknown calendar setting %r ignored", key)
        except (TypeError, ValueError) as e:
            logger.warning("Invalid calendar setting %s=%r: %s (keeping default)", key, value, e)
    return settings


def load_settings(settings_file: Optional[Path] = None) -> CalendarSettings:
    """
    Load calendar settings from settings.json.

    Args:
        settings_file: Path to settings.json (None = defaults only)

    Returns:
        CalendarSettings
    """
    if settings_file is None or not settings_file.exists():
        return DEFAULT_SETTINGS

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not read %s: %s (using defaults)", settings_file, e)
        return DEFAULT_SETTINGS

    section = raw.get("calendar", {}) if isinstance(raw, dict) else {}
    if not isinstance(section, dict):
        logger.warning("'calendar' section in %s is not an object (using defaults)", settings_file)
        return DEFAULT_SETTINGS

    return _apply_section(DEFAULT_SETTINGS, section)
