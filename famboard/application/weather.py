"""
Current weather for the dashboard, proxied from Open-Meteo
"""
import logging

import requests

from famboard.application.errors import UpstreamUnavailable, ValidationFailed
from famboard.config import Settings, get_settings
from famboard.infrastructure.db.models import HouseholdSettings

logger = logging.getLogger(__name__)

# WMO weather interpretation codes
WEATHER_CODES: dict[int, tuple[str, str]] = {
    0: ("Clear sky", "sun"),
    1: ("Mainly clear", "sun"),
    2: ("Partly cloudy", "cloud-sun"),
    3: ("Overcast", "cloud"),
    45: ("Foggy", "cloud-fog"),
    48: ("Depositing rime fog", "cloud-fog"),
    51: ("Light drizzle", "cloud-drizzle"),
    53: ("Moderate drizzle", "cloud-drizzle"),
    55: ("Dense drizzle", "cloud-drizzle"),
    56: ("Light freezing drizzle", "cloud-drizzle"),
    57: ("Dense freezing drizzle", "cloud-drizzle"),
    61: ("Slight rain", "cloud-rain"),
    63: ("Moderate rain", "cloud-rain"),
    65: ("Heavy rain", "cloud-rain"),
    66: ("Light freezing rain", "cloud-rain"),
    67: ("Heavy freezing rain", "cloud-rain"),
    71: ("Slight snow", "cloud-snow"),
    73: ("Moderate snow", "cloud-snow"),
    75: ("Heavy snow", "cloud-snow"),
    77: ("Snow grains", "cloud-snow"),
    80: ("Slight rain showers", "cloud-sun-rain"),
    81: ("Moderate rain showers", "cloud-sun-rain"),
    82: ("Violent rain showers", "cloud-sun-rain"),
    85: ("Slight snow showers", "cloud-snow"),
    86: ("Heavy snow showers", "cloud-snow"),
    95: ("Thunderstorm", "cloud-lightning"),
    96: ("Thunderstorm with slight hail", "cloud-lightning"),
    99: ("Thunderstorm with heavy hail", "cloud-lightning"),
}
UNKNOWN_WEATHER = ("Unknown", "cloud")


def describe_weather_code(code: int | None) -> dict:
    description, icon = WEATHER_CODES.get(code, UNKNOWN_WEATHER)
    return {"description": description, "icon": icon}


def fetch_weather(settings_row: HouseholdSettings, settings: Settings | None = None) -> dict:
    """
    Current conditions plus today's high/low in Fahrenheit

    Raises:
        ValidationFailed: no latitude/longitude configured
        UpstreamUnavailable: Open-Meteo unreachable or returned garbage
    """
    if settings_row.weather_lat is None or settings_row.weather_lon is None:
        raise ValidationFailed("Weather location not configured")

    settings = settings or get_settings()
    params = {
        "latitude": settings_row.weather_lat,
        "longitude": settings_row.weather_lon,
        "current_weather": "true",
        "daily": "temperature_2m_max,temperature_2m_min",
        "temperature_unit": "fahrenheit",
        "timezone": "auto",
    }
    try:
        resp = requests.get(settings.WEATHER_API_URL, params=params, timeout=settings.WEATHER_TIMEOUT_SECONDS)
        resp.raise_for_status()
        data = resp.json()
        current = data["current_weather"]
        daily = data["daily"]
        info = describe_weather_code(current.get("weathercode"))
        return {
            "temp": round(current["temperature"]),
            "condition": info["description"],
            "icon": info["icon"],
            "isDay": current.get("is_day") == 1,
            "high": round(daily["temperature_2m_max"][0]),
            "low": round(daily["temperature_2m_min"][0]),
            "city": settings_row.weather_city,
        }
    except (requests.RequestException, ValueError, KeyError, IndexError, TypeError):
        logger.exception("Weather fetch failed for lat=%s lon=%s", settings_row.weather_lat, settings_row.weather_lon)
        raise UpstreamUnavailable("Failed to fetch weather")
