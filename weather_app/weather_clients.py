"""
Weather and video API clients.

API logic lives here rather than in the FastAPI endpoints so that both the
search pages and the record CRUD share one implementation, and so the clients
can be tested against an httpx.MockTransport.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus

import httpx

from .errors import ConfigurationError, LocationNotFoundError, UpstreamError, WeatherError
from .locations import COORDINATES, LANDMARK, POSTAL, LocationQuery, parse_location

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedLocation:
    """
    Minimal resolved location object produced by geocoding.
    """
    name: str
    country: str
    state: str
    lat: float
    lon: float

    @property
    def label(self) -> str:
        return ", ".join(p for p in (self.name, self.state, self.country) if p)


def _round_half_up(value: float) -> int:
    """Halves round up, as Math.round does in JavaScript (-2.5 -> -2, 62.5 -> 63)."""
    return math.floor(value + 0.5)


def _round_1(value: float) -> float:
    return _round_half_up(value * 10) / 10


def celsius_to_fahrenheit(celsius: float) -> float:
    return _round_1(celsius * 9 / 5 + 32)


class OpenWeatherClient:
    """
    OpenWeatherMap wrapper.

    Endpoints used:
    - Geocoding:
        /geo/1.0/direct, /geo/1.0/reverse, /geo/1.0/zip
    - Current weather:
        /data/2.5/weather?lat=...&lon=...&units=metric&appid=KEY
    - 5-day forecast (3-hour increments):
        /data/2.5/forecast?lat=...&lon=...&units=metric&appid=KEY
    """

    def __init__(
        self,
        api_key: str,
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.transport = transport
        self.base = "https://api.openweathermap.org"

    async def _get(self, path: str, params: Dict[str, Any], what: str) -> httpx.Response:
        """GET an OpenWeather endpoint. Non-2xx responses are returned to the caller."""
        if not self.api_key:
            logger.error("OpenWeather API key is missing")
            raise ConfigurationError("Weather service configuration error")

        params = {**params, "appid": self.api_key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.get(f"{self.base}{path}", params=params)
        except httpx.HTTPError as e:
            logger.warning("%s request failed: %s", what, e)
            raise UpstreamError(f"{what} failed: could not reach the weather service.") from e

        if r.status_code == 401:
            logger.error("OpenWeather rejected the API key (%s)", what)
            raise UpstreamError("Invalid API key. Please check your OpenWeather API configuration.")
        return r

    def _raise_for_status(self, r: httpx.Response, what: str) -> None:
        if r.status_code != 200:
            logger.warning("%s failed (%s): %s", what, r.status_code, r.text)
            raise UpstreamError(f"{what} failed ({r.status_code}).")

    async def geocode(self, query: str) -> ResolvedLocation:
        """
        Resolve a user-provided location string into a (name/state/country/lat/lon).

        See locations.parse_location for the supported formats and the order
        they are checked in.
        """
        parsed = parse_location(query)
        logger.debug("Resolving %r as %s", query, parsed.kind)

        if parsed.kind == COORDINATES:
            return await self._reverse(parsed)
        if parsed.kind == POSTAL:
            return await self._postal(parsed)
        if parsed.kind == LANDMARK:
            return ResolvedLocation(name=parsed.name, country="", state="", lat=parsed.lat, lon=parsed.lon)
        return await self._direct(parsed)

    async def _reverse(self, parsed: LocationQuery) -> ResolvedLocation:
        lat, lon = parsed.lat, parsed.lon
        r = await self._get("/geo/1.0/reverse", {"lat": lat, "lon": lon, "limit": 1}, "Reverse geocoding")
        self._raise_for_status(r, "Reverse geocoding")

        results = r.json() or []
        if results:
            best = results[0]
            return ResolvedLocation(
                name=best.get("name") or f"{lat:.4f}, {lon:.4f}",
                state=best.get("state", ""),
                country=best.get("country", ""),
                lat=lat,
                lon=lon,
            )

        # Open ocean and the like: keep the coordinates, label them numerically
        return ResolvedLocation(name=f"{lat:.4f}, {lon:.4f}", state="", country="", lat=lat, lon=lon)

    async def _postal(self, parsed: LocationQuery) -> ResolvedLocation:
        # Ambiguous codes ("75001") are tried against each matching country in turn.
        for country in parsed.countries:
            r = await self._get("/geo/1.0/zip", {"zip": f"{parsed.text},{country}"}, "Postal code geocoding")
            if r.status_code == 404:
                continue
            self._raise_for_status(r, "Postal code geocoding")

            data = r.json()
            logger.info("Postal code %s resolved in %s", parsed.text, country)
            return ResolvedLocation(
                name=data.get("name", parsed.text),
                # ZIP endpoint doesn't include state
                state="",
                country=data.get("country", country),
                lat=float(data["lat"]),
                lon=float(data["lon"]),
            )

        raise LocationNotFoundError(
            f'Postal code "{parsed.text}" not found. Please check the format and try again.'
        )

    async def _direct(self, parsed: LocationQuery) -> ResolvedLocation:
        r = await self._get("/geo/1.0/direct", {"q": parsed.text, "limit": 5}, "Geocoding")
        self._raise_for_status(r, "Geocoding")

        results = r.json() or []
        if not results:
            raise LocationNotFoundError(
                f'Location "{parsed.text}" not found. Please check the spelling '
                "or try a different location (e.g. 'Paris, FR', '10001' or '40.7128,-74.0060')."
            )

        best = results[0]
        return ResolvedLocation(
            name=best.get("name", parsed.text),
            state=best.get("state", ""),
            country=best.get("country", ""),
            lat=float(best["lat"]),
            lon=float(best["lon"]),
        )

    async def current_weather(self, lat: float, lon: float, units: str = "metric") -> Dict[str, Any]:
        """
        Retrieves current weather conditions for a lat/lon.
        Temperatures are rounded to whole degrees for display.
        """
        r = await self._get("/data/2.5/weather", {"lat": lat, "lon": lon, "units": units}, "Current weather")
        self._raise_for_status(r, "Current weather")

        data = r.json()
        main = data.get("main") or {}
        for key in ("temp", "feels_like", "temp_min", "temp_max"):
            if main.get(key) is not None:
                main[key] = _round_half_up(float(main[key]))
        return data

    async def forecast_5day_3h(self, lat: float, lon: float, units: str = "metric") -> Dict[str, Any]:
        """
        Retrieves the 5-day forecast in 3-hour increments.
        """
        r = await self._get("/data/2.5/forecast", {"lat": lat, "lon": lon, "units": units}, "Forecast")
        self._raise_for_status(r, "Forecast")
        return r.json()

    @staticmethod
    def local_today(forecast_3h: Dict[str, Any], now: Optional[datetime] = None) -> date:
        """Today's date in the forecast city's timezone. A naive `now` is taken as UTC."""
        tz_offset = int((forecast_3h.get("city") or {}).get("timezone", 0))
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return datetime.fromtimestamp(now.timestamp() + tz_offset, tz=timezone.utc).date()

    @staticmethod
    def summarize_to_5_days(forecast_3h: Dict[str, Any], skip_date: Optional[date] = None) -> List[Dict[str, Any]]:
        """
        OpenWeather forecast returns ~40 data points (3-hour steps).
        The UI shows one card per day.

        Strategy:
        - Group items by local date (using city timezone offset)
        - Drop `skip_date` (usually today, which the current-weather panel covers)
        - For each day:
          - temp min/max over all steps
          - the most frequent (icon, description) pair
          - max chance of precipitation, average humidity and wind
        """
        city = forecast_3h.get("city", {})
        tz_offset = int(city.get("timezone", 0))  # seconds offset from UTC
        items = forecast_3h.get("list", [])

        def local_day(dt_utc: int) -> date:
            return datetime.fromtimestamp(dt_utc + tz_offset, tz=timezone.utc).date()

        grouped: Dict[date, List[Dict[str, Any]]] = {}
        for item in items:
            d = local_day(int(item["dt"]))
            if d == skip_date:
                continue
            grouped.setdefault(d, []).append(item)

        days: List[Dict[str, Any]] = []
        for d in sorted(grouped.keys())[:5]:
            steps = grouped[d]

            # pop is 0..1, may not exist on all steps
            pops = [float(x["pop"]) for x in steps if x.get("pop") is not None]
            pop_max = max(pops) if pops else None
            pop_pct = _round_half_up(pop_max * 100) if pop_max is not None else None

            temps = [float(x["main"]["temp"]) for x in steps if "temp" in (x.get("main") or {})]
            humidity = [float(x["main"]["humidity"]) for x in steps if "humidity" in (x.get("main") or {})]
            wind = [float(x["wind"]["speed"]) for x in steps if "speed" in (x.get("wind") or {})]

            counts: Counter = Counter()
            for x in steps:
                w = (x.get("weather") or [{}])[0]
                counts[(w.get("icon", ""), w.get("description", ""))] += 1
            icon, desc = counts.most_common(1)[0][0] if counts else ("", "")

            days.append({
                "date": d.isoformat(),
                "dow": d.strftime("%a"),  # e.g., "Fri"
                "date_display": d.strftime("%b %d, %Y"),  # e.g., "Dec 14, 2025"
                "tmin": _round_half_up(min(temps)) if temps else None,
                "tmax": _round_half_up(max(temps)) if temps else None,
                "icon": icon,
                "description": desc,
                "pop_max": pop_max,
                "pop_pct": pop_pct,
                "humidity": _round_half_up(sum(humidity) / len(humidity)) if humidity else None,
                "wind_speed": _round_1(sum(wind) / len(wind)) if wind else None,
            })

        return days

    @staticmethod
    def average_conditions(forecast_3h: Dict[str, Any], start: date, end: date) -> Dict[str, Any]:
        """
        Average the metric forecast steps that fall on [start, end] (UTC dates, inclusive).

        This is what a stored weather record holds.
        """
        steps = [
            x for x in forecast_3h.get("list", [])
            if start <= datetime.fromtimestamp(int(x["dt"]), tz=timezone.utc).date() <= end
        ]
        if not steps:
            raise WeatherError("No forecast data available for the selected date range")

        avg_temp = sum(float(x["main"]["temp"]) for x in steps) / len(steps)
        avg_humidity = sum(float(x["main"]["humidity"]) for x in steps) / len(steps)
        avg_wind = sum(float(x["wind"]["speed"]) for x in steps) / len(steps)

        descriptions = Counter((x.get("weather") or [{}])[0].get("description", "") for x in steps)

        return {
            "temperature_celsius": _round_1(avg_temp),
            "temperature_fahrenheit": celsius_to_fahrenheit(avg_temp),
            "description": descriptions.most_common(1)[0][0],
            "humidity": _round_half_up(avg_humidity),
            "wind_speed": _round_1(avg_wind),
        }


class YouTubeClient:
    """
    YouTube Data API v3 search, used for the "travel videos" panel.

    Videos are decoration: any failure is logged and an empty list returned,
    so the weather page still renders.
    """

    def __init__(
        self,
        api_key: str,
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.transport = transport
        self.base = "https://www.googleapis.com/youtube/v3/search"

    @staticmethod
    def search_url(location: str) -> str:
        """Plain results-page link; works without an API key."""
        return f"https://www.youtube.com/results?search_query={quote_plus(location.strip())}"

    async def search_videos(self, location: str, max_results: int = 4) -> List[Dict[str, Any]]:
        if not self.api_key:
            logger.info("Skipping YouTube lookup - API key not configured")
            return []

        params = {
            "part": "snippet",
            "q": f"{location} travel guide",
            "type": "video",
            "maxResults": max_results,
            "key": self.api_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.get(self.base, params=params)
        except httpx.HTTPError as e:
            logger.warning("YouTube request failed: %s", e)
            return []

        if r.status_code != 200:
            logger.warning("YouTube search failed (%s): %s", r.status_code, r.text)
            return []

        videos: List[Dict[str, Any]] = []
        for item in r.json().get("items") or []:
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id:
                continue
            snippet = item.get("snippet") or {}
            thumbs = snippet.get("thumbnails") or {}
            thumb = (thumbs.get("high") or thumbs.get("default") or {}).get("url", "")
            videos.append({
                "id": video_id,
                "title": snippet.get("title", ""),
                "thumbnail": thumb,
                "channel_title": snippet.get("channelTitle", ""),
                "url": f"https://www.youtube.com/watch?v={video_id}",
            })

        logger.info("YouTube returned %d videos for %r", len(videos), location)
        return videos


def map_embed_url(lat: float, lon: float) -> str:
    """Keyless Google Maps embed for a coordinate."""
    return f"https://maps.google.com/maps?q={lat},{lon}&z=12&output=embed"
