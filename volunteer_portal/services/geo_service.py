"""
Geocoding (OpenStreetMap Nominatim) and weather forecasts (Open-Meteo).

Both APIs are free and keyless; results are cached in-process to respect
their usage policies. Any failure yields an empty result instead of an error.
"""

import logging
import re
import time
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import httpx

from volunteer_portal.core.config import settings

logger = logging.getLogger(__name__)

_NOT_AN_ADDRESS = re.compile(r"^(TBD|Virtual|Online|Zoom|TBA)$", re.IGNORECASE)

WMO_LABELS = {
    0: "Clear",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Foggy",
    51: "Light drizzle",
    53: "Drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Freezing rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Rain showers",
    82: "Heavy rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm + hail",
    99: "Thunderstorm + heavy hail",
}

# key -> (expires_at, value)
_geocode_cache: Dict[str, Tuple[float, Optional[Dict[str, Any]]]] = {}
_forecast_cache: Dict[Tuple, Tuple[float, List[Dict[str, Any]]]] = {}


def clear_caches() -> None:
    _geocode_cache.clear()
    _forecast_cache.clear()


def _cached(cache: Dict, key):
    entry = cache.get(key)
    if entry and entry[0] > time.monotonic():
        return True, entry[1]
    return False, None


def looks_like_address(location: Optional[str]) -> bool:
    """True for strings worth geocoding; skips "TBD", "Virtual" and short venue names."""
    if not location or len(location.strip()) < 10:
        return False
    text = location.strip()
    if _NOT_AN_ADDRESS.match(text):
        return False
    return bool(re.search(r"\d", text)) or "," in text


def celsius_to_f(value: float) -> int:
    return round(value * 9 / 5 + 32)


def forecast_date_range(start_date: date, end_date: date) -> Tuple[date, date]:
    """The first three days of an event, capped at its end date."""
    last = min(start_date + timedelta(days=2), end_date)
    return start_date, last


async def geocode_address(address: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> Optional[Dict[str, Any]]:
    query = (address or "").strip()
    if not query:
        return None

    hit, value = _cached(_geocode_cache, query)
    if hit:
        return value

    try:
        async with httpx.AsyncClient(transport=transport, timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(
                settings.NOMINATIM_URL,
                params={"q": query, "format": "json", "limit": "1"},
                headers={"User-Agent": settings.NOMINATIM_USER_AGENT},
            )
        if not response.is_success:
            logger.warning("Nominatim returned %s for %r", response.status_code, query)
            return None
        results = response.json()
        first = results[0] if isinstance(results, list) and results else None
        if not isinstance(first, dict) or not first.get("lat") or not first.get("lon"):
            result = None
        else:
            result = {
                "lat": float(first["lat"]),
                "lon": float(first["lon"]),
                "display_name": first.get("display_name") or query,
            }
    except (httpx.HTTPError, ValueError, TypeError) as e:
        logger.warning("Geocoding failed for %r: %s", query, e)
        return None

    _geocode_cache[query] = (time.monotonic() + settings.GEOCODE_CACHE_SECONDS, result)
    return result


def _parse_daily(daily: Dict[str, Any]) -> List[Dict[str, Any]]:
    times = daily.get("time") or []
    max_t = daily.get("temperature_2m_max") or []
    min_t = daily.get("temperature_2m_min") or []
    codes = daily.get("weathercode") or []
    precip = daily.get("precipitation_probability_max") or []
    feels = daily.get("apparent_temperature_max") or []

    def at(values, i):
        return values[i] if i < len(values) else None

    days = []
    for i, raw_date in enumerate(times):
        day = str(raw_date)[:10]
        code = at(codes, i) or 0
        feels_like = at(feels, i)
        days.append({
            "date": day,
            "day_name": datetime.strptime(day, "%Y-%m-%d").strftime("%a"),
            "high_f": celsius_to_f(at(max_t, i) or 0),
            "low_f": celsius_to_f(at(min_t, i) or 0),
            "weather_code": code,
            "weather_label": WMO_LABELS.get(code, "-"),
            "precip_prob_max": at(precip, i),
            "feels_like_f": celsius_to_f(feels_like) if feels_like is not None else None,
        })
    return days


async def fetch_forecast(
    lat: float,
    lon: float,
    start: date,
    end: date,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[Dict[str, Any]]:
    key = (lat, lon, start.isoformat(), end.isoformat())
    hit, value = _cached(_forecast_cache, key)
    if hit:
        return value

    params = {
        "latitude": str(lat),
        "longitude": str(lon),
        "daily": "temperature_2m_max,temperature_2m_min,weathercode,precipitation_probability_max,apparent_temperature_max",
        "timezone": settings.WEATHER_TIMEZONE,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
    }
    try:
        async with httpx.AsyncClient(transport=transport, timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(settings.OPEN_METEO_URL, params=params)
        if not response.is_success:
            logger.warning("Open-Meteo returned %s", response.status_code)
            return []
        daily = response.json().get("daily") or {}
        days = _parse_daily(daily)
    except (httpx.HTTPError, ValueError, AttributeError) as e:
        logger.warning("Forecast lookup failed for %s,%s: %s", lat, lon, e)
        return []

    _forecast_cache[key] = (time.monotonic() + settings.WEATHER_CACHE_SECONDS, days)
    return days


async def event_forecast(location: Optional[str], start_date: date, end_date: date,
                         transport: Optional[httpx.AsyncBaseTransport] = None) -> Dict[str, Any]:
    """Geocode an event's location and fetch the forecast for its first days."""
    if not looks_like_address(location):
        return {"location": None, "days": []}
    place = await geocode_address(location, transport=transport)
    if not place:
        return {"location": None, "days": []}
    start, end = forecast_date_range(start_date, end_date)
    days = await fetch_forecast(place["lat"], place["lon"], start, end, transport=transport)
    return {"location": place, "days": days}
