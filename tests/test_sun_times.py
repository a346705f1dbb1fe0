"""
Tests for sun times: offline calculation and web service lookup.

The web service is never contacted: every provider gets an
httpx.AsyncClient backed by a MockTransport.
"""
import asyncio
from dataclasses import replace
from datetime import date

import httpx
import pytest

from trust_calendar.domain.models import SunTimes
from trust_calendar.settings import DEFAULT_SETTINGS, Location
from trust_calendar.sun_times import MAX_CONCURRENT_REQUESTS, SunTimesProvider, SunTimesUnavailable, calculate_sun_times


OK_PAYLOAD = {
    "results": {
        "sunrise": "2025-03-10T00:56:00+00:00",
        "sunset": "2025-03-10T12:45:00+00:00",
    },
    "status": "OK",
}


def _provider(handler, **overrides):
    settings = replace(DEFAULT_SETTINGS, **overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SunTimesProvider(settings, client=client)


def _run(coro):
    return asyncio.run(coro)


class TestCalculation:
    """Offline solar calculation."""

    def test_equator_at_greenwich(self):
        location = Location(latitude=0.0, longitude=0.0, utc_offset_minutes=0)
        times = calculate_sun_times(date(2025, 3, 22), location)
        assert times == SunTimes("06:00", "18:00")

    def test_bengaluru_is_plausible(self):
        times = calculate_sun_times(date(2025, 3, 10))
        sunrise_hour = int(times.sunrise[:2])
        sunset_hour = int(times.sunset[:2])
        assert 5 <= sunrise_hour <= 7
        assert 17 <= sunset_hour <= 19

    def test_midnight_sun_is_clamped(self):
        arctic = Location(latitude=80.0, longitude=0.0, utc_offset_minutes=0)
        times = calculate_sun_times(date(2025, 6, 21), arctic)
        assert times.sunrise == "00:00"

    def test_polar_night_is_clamped(self):
        arctic = Location(latitude=80.0, longitude=0.0, utc_offset_minutes=0)
        times = calculate_sun_times(date(2025, 12, 21), arctic)
        assert times.sunrise == "12:00"
        assert times.sunset == "12:00"

    def test_deterministic(self):
        assert calculate_sun_times(date(2025, 7, 4)) == calculate_sun_times(date(2025, 7, 4))


class TestFetch:
    """Web service lookup."""

    def test_success_converts_to_local_time(self):
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, json=OK_PAYLOAD)

        times = _run(_provider(handler).fetch(date(2025, 3, 10)))

        assert times == SunTimes("06:26", "18:15")
        assert seen["date"] == "2025-03-10"
        assert seen["formatted"] == "0"
        assert seen["lat"] == "12.9716"
        assert seen["lng"] == "77.5946"

    def test_http_error_raises(self):
        provider = _provider(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(SunTimesUnavailable):
            _run(provider.fetch(date(2025, 3, 10)))

    def test_non_ok_status_raises(self):
        provider = _provider(lambda request: httpx.Response(200, json={"results": "", "status": "INVALID_DATE"}))
        with pytest.raises(SunTimesUnavailable, match="INVALID_DATE"):
            _run(provider.fetch(date(2025, 3, 10)))

    def test_malformed_payload_raises(self):
        provider = _provider(lambda request: httpx.Response(200, json={"results": {}, "status": "OK"}))
        with pytest.raises(SunTimesUnavailable):
            _run(provider.fetch(date(2025, 3, 10)))

    def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(SunTimesUnavailable):
            _run(_provider(handler).fetch(date(2025, 3, 10)))

    def test_disabled_service_raises_without_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=OK_PAYLOAD)

        with pytest.raises(SunTimesUnavailable):
            _run(_provider(handler, sun_api_enabled=False).fetch(date(2025, 3, 10)))
        assert calls == []


class TestBestEffort:
    """Degradation rules."""

    def test_fallback_to_calculation(self):
        provider = _provider(lambda request: httpx.Response(503))
        times = _run(provider.fetch_best_effort(date(2025, 3, 10)))
        assert times == calculate_sun_times(date(2025, 3, 10))

    def test_no_fallback_returns_none(self):
        provider = _provider(lambda request: httpx.Response(503), fallback_to_calculation=False)
        assert _run(provider.fetch_best_effort(date(2025, 3, 10))) is None

    def test_offline_uses_calculation_directly(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=OK_PAYLOAD)

        provider = _provider(handler, sun_api_enabled=False)
        times = _run(provider.fetch_best_effort(date(2025, 3, 10)))

        assert times == calculate_sun_times(date(2025, 3, 10))
        assert calls == []

    def test_fetch_many_isolates_failures(self):
        # Given: the service fails for one date only
        def handler(request):
            if request.url.params["date"] == "2025-03-11":
                return httpx.Response(500)
            return httpx.Response(200, json=OK_PAYLOAD)

        provider = _provider(handler, fallback_to_calculation=False)
        days = [date(2025, 3, 10), date(2025, 3, 11), date(2025, 3, 10)]

        # When
        results = _run(provider.fetch_many(days))

        # Then: duplicates collapse, the failing day is None, the other succeeds
        assert set(results) == {date(2025, 3, 10), date(2025, 3, 11)}
        assert results[date(2025, 3, 10)] == SunTimes("06:26", "18:15")
        assert results[date(2025, 3, 11)] is None


class TestFetchMany:
    """Batch lookup for a month grid."""

    MONTH = [date(2025, 3, d) for d in range(1, 32)]

    def test_in_flight_requests_are_capped(self):
        in_flight = 0
        peak = 0

        async def handler(request):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return httpx.Response(200, json=OK_PAYLOAD)

        results = _run(_provider(handler).fetch_many(self.MONTH))

        assert len(results) == 31
        assert all(times == SunTimes("06:26", "18:15") for times in results.values())
        assert 1 < peak <= MAX_CONCURRENT_REQUESTS

    def test_one_client_per_batch(self, monkeypatch):
        real_client = httpx.AsyncClient
        opened = []

        def counting_client(**kwargs):
            opened.append(kwargs)
            transport = httpx.MockTransport(lambda request: httpx.Response(200, json=OK_PAYLOAD))
            return real_client(transport=transport, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", counting_client)
        provider = SunTimesProvider(DEFAULT_SETTINGS)

        results = _run(provider.fetch_many(self.MONTH))

        assert len(results) == 31
        assert len(opened) == 1
        assert opened[0]["timeout"] == DEFAULT_SETTINGS.sun_api_timeout

    def test_offline_batch_makes_no_requests(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=OK_PAYLOAD)

        results = _run(_provider(handler, sun_api_enabled=False).fetch_many(self.MONTH[:3]))

        assert calls == []
        assert results[date(2025, 3, 1)] == calculate_sun_times(date(2025, 3, 1))
