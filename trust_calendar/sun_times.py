"""
Sunrise/sunset times for the trust's location.

Two sources:
- calculate_sun_times(): offline simplified solar calculation (pure)
- SunTimesProvider.fetch(): sunrise-sunset web service via httpx

Sun times are enrichment only. Callers that must not fail use
fetch_best_effort()/fetch_many(), which log and degrade instead of raising.
"""
import asyncio
import logging
import math
from contextlib import asynccontextmanager
from datetime import date as Date, datetime, timedelta, timezone
from typing import Dict, Iterable, Optional

import httpx

from .domain.models import SunTimes
from .settings import BENGALURU, DEFAULT_SETTINGS, CalendarSettings, Location


logger = logging.getLogger(__name__)

# Cap on simultaneous web service requests issued by fetch_many()
MAX_CONCURRENT_REQUESTS = 5


class SunTimesUnavailable(Exception):
    """Raised when sun times could not be obtained from the web service."""
    pass


def _format_clock(decimal_hours: float) -> str:
    """Decimal hours -> HH:MM (24-hour), rounded to the nearest minute."""
    total_minutes = int(round(decimal_hours * 60)) % (24 * 60)
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def calculate_sun_times(day: Date, location: Location = BENGALURU) -> SunTimes:
    """
    Approximate sunrise and sunset in local standard time.

    Uses solar declination for the day of year and the sunrise hour angle;
    polar day/night clamp the hour angle. Accurate to a few minutes near
    the tropics, which is all the calendar needs.

    Args:
        day: Date to compute for
        location: Observation point and UTC offset

    Returns:
        SunTimes in HH:MM
    """
    day_of_year = day.timetuple().tm_yday
    declination = 23.45 * math.sin(math.radians((360 / 365) * (day_of_year - 81)))

    cos_hour_angle = -math.tan(math.radians(location.latitude)) * math.tan(math.radians(declination))
    if cos_hour_angle > 1:
        hour_angle = 0.0       # polar night
    elif cos_hour_angle < -1:
        hour_angle = 180.0     # midnight sun
    else:
        hour_angle = math.degrees(math.acos(cos_hour_angle))

    solar_noon = 12 - location.longitude / 15 + location.utc_offset_minutes / 60
    return SunTimes(
        sunrise=_format_clock(solar_noon - hour_angle / 15),
        sunset=_format_clock(solar_noon + hour_angle / 15),
    )


def _to_local_clock(iso_timestamp: str, utc_offset_minutes: int) -> str:
    moment = datetime.fromisoformat(iso_timestamp)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(timezone(timedelta(minutes=utc_offset_minutes)))
    return local.strftime("%H:%M")


class SunTimesProvider:
    """
    Sun times lookup with web service + offline fallback.

    Usage:
        provider = SunTimesProvider(settings)
        times = await provider.fetch_best_effort(date(2025, 3, 10))
        by_day = await provider.fetch_many(days)
    """

    def __init__(self, settings: CalendarSettings = DEFAULT_SETTINGS, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            settings: Location, endpoint and fallback configuration
            client: Shared AsyncClient (tests inject one with a MockTransport);
                    None opens one client per fetch/fetch_many call
        """
        self.settings = settings
        self._client = client

    @asynccontextmanager
    async def _session(self):
        """Yield the injected client as-is, or a new one closed on exit."""
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(timeout=self.settings.sun_api_timeout) as client:
                yield client

    async def fetch(self, day: Date) -> SunTimes:
        """
        Query the sunrise-sunset web service.

        Raises:
            SunTimesUnavailable: service disabled, transport/HTTP error,
                non-OK status or malformed payload
        """
        if not self.settings.sun_api_enabled:
            raise SunTimesUnavailable("Sun times web service is disabled")
        async with self._session() as client:
            return await self._fetch_with(client, day)

    async def _fetch_with(self, client: httpx.AsyncClient, day: Date) -> SunTimes:
        location = self.settings.location
        params = {
            "lat": location.latitude,
            "lng": location.longitude,
            "date": day.isoformat(),
            "formatted": 0,
        }

        try:
            response = await client.get(self.settings.sun_api_url, params=params, timeout=self.settings.sun_api_timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SunTimesUnavailable(f"Sun times request for {day} failed: {e}") from e

        if not isinstance(data, dict) or data.get("status") != "OK":
            status = data.get("status") if isinstance(data, dict) else None
            raise SunTimesUnavailable(f"Sun times service returned status {status!r} for {day}")

        try:
            results = data["results"]
            return SunTimes(
                sunrise=_to_local_clock(results["sunrise"], location.utc_offset_minutes),
                sunset=_to_local_clock(results["sunset"], location.utc_offset_minutes),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SunTimesUnavailable(f"Malformed sun times payload for {day}: {e}") from e

    def _fallback(self, day: Date) -> Optional[SunTimes]:
        if self.settings.fallback_to_calculation:
            return calculate_sun_times(day, self.settings.location)
        return None

    async def _best_effort_with(self, client: httpx.AsyncClient, day: Date, limit: asyncio.Semaphore) -> Optional[SunTimes]:
        try:
            async with limit:
                return await self._fetch_with(client, day)
        except SunTimesUnavailable as e:
            logger.warning("%s", e)
        return self._fallback(day)

    async def fetch_best_effort(self, day: Date) -> Optional[SunTimes]:
        """
        Sun times without ever raising.

        Web service first; on failure the offline calculation when
        fallback_to_calculation is set, otherwise None.
        """
        if self.settings.sun_api_enabled:
            try:
                return await self.fetch(day)
            except SunTimesUnavailable as e:
                logger.warning("%s", e)
        return self._fallback(day)

    async def fetch_many(self, days: Iterable[Date]) -> Dict[Date, Optional[SunTimes]]:
        """
        Concurrent best-effort lookup; one failing day never affects the others.

        All requests share one client and at most MAX_CONCURRENT_REQUESTS
        are in flight at a time.
        """
        unique_days = list(dict.fromkeys(days))
        if not self.settings.sun_api_enabled:
            return {day: self._fallback(day) for day in unique_days}

        limit = asyncio.Semaphore(MAX_CONCURRENT_REQUESTS)
        async with self._session() as client:
            results = await asyncio.gather(*(self._best_effort_with(client, day, limit) for day in unique_days))
        return dict(zip(unique_days, results))
