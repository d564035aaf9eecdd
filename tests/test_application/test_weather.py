"""
Tests for the weather proxy
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from famboard.application.errors import UpstreamUnavailable, ValidationFailed
from famboard.application.weather import describe_weather_code, fetch_weather
from famboard.infrastructure.db.models import HouseholdSettings


def _row(**kwargs) -> HouseholdSettings:
    values = {"key": "household", "weather_lat": 45.52, "weather_lon": -122.68, "weather_city": "Portland"}
    values.update(kwargs)
    return HouseholdSettings(**values)


def _response(payload: dict) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


OPEN_METEO_PAYLOAD = {
    "current_weather": {"temperature": 61.6, "weathercode": 2, "is_day": 1},
    "daily": {"temperature_2m_max": [66.2], "temperature_2m_min": [48.9]},
}


class TestFetchWeather:
    def test_success(self):
        with patch("famboard.application.weather.requests.get", return_value=_response(OPEN_METEO_PAYLOAD)) as get:
            result = fetch_weather(_row())

        assert result == {
            "temp": 62,
            "condition": "Partly cloudy",
            "icon": "cloud-sun",
            "isDay": True,
            "high": 66,
            "low": 49,
            "city": "Portland",
        }
        params = get.call_args.kwargs["params"]
        assert params["latitude"] == 45.52
        assert params["temperature_unit"] == "fahrenheit"

    def test_location_missing(self):
        with pytest.raises(ValidationFailed, match="Weather location not configured"):
            fetch_weather(_row(weather_lat=None))

    def test_network_error(self):
        with patch("famboard.application.weather.requests.get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(UpstreamUnavailable) as exc:
                fetch_weather(_row())
        assert exc.value.status_code == 502

    def test_malformed_payload(self):
        with patch("famboard.application.weather.requests.get", return_value=_response({"daily": {}})):
            with pytest.raises(UpstreamUnavailable, match="Failed to fetch weather"):
                fetch_weather(_row())

    def test_unknown_code(self):
        assert describe_weather_code(1234) == {"description": "Unknown", "icon": "cloud"}
