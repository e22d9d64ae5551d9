"""
Tests for the Open-Meteo weather client and response parsing.

Network calls go through a mocked requests session.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from nzi.config.model import City
from nzi.errors import FetchTimeout, MalformedResponse, TransportFailure, UnknownLocation
from nzi.weather.conditions import WeatherIcon, average_wind_direction, wind_direction
from nzi.weather.open_meteo import OpenMeteoClient, TimeOfDay, parse_forecast


def sample_payload():
    """One forecast day with 24 hourly samples."""
    hourly_temps = [10.0] * 6 + [14.0] * 6 + [18.0] * 6 + [12.0] * 6
    return {
        "latitude": -41.28,
        "longitude": 174.77,
        "current": {
            "time": "2024-06-01T12:00",
            "temperature_2m": 11.6,
            "apparent_temperature": 8.4,
            "relative_humidity_2m": 81,
            "wind_speed_10m": 32.2,
            "wind_direction_10m": 350.0,
            "weather_code": 61,
            "is_day": 1,
        },
        "daily": {
            "time": ["2024-06-01"],
            "temperature_2m_max": [18.4],
            "temperature_2m_min": [9.6],
            "wind_speed_10m_max": [45.1],
            "weather_code": [63],
        },
        "hourly": {
            "time": [f"2024-06-01T{h:02d}:00" for h in range(24)],
            "temperature_2m": hourly_temps,
            "wind_speed_10m": [20.0] * 23 + [50.0],
            "wind_direction_10m": [350.0, 10.0] * 12,
            "weather_code": [3] * 12 + [61] * 12,
        },
    }


def mock_session(payload=None, exc=None):
    session = MagicMock()
    session.headers = {}
    if exc is not None:
        session.get.side_effect = exc
    else:
        response = MagicMock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        session.get.return_value = response
    return session


class TestParseForecast:
    """Test payload parsing."""

    def test_current_conditions(self):
        observed = datetime(2024, 6, 1, tzinfo=timezone.utc)
        report = parse_forecast(sample_payload(), observed)
        assert report.temp_c == 12
        assert report.feels_like_c == 8
        assert report.humidity == 81
        assert report.wind_kmph == 32
        assert report.wind_dir == "N"
        assert report.icon is WeatherIcon.RAIN
        assert report.description == "Rain"
        assert report.is_day
        assert report.observed_at == observed
        assert report.temp_string() == "12°C"

    def test_daily_forecast_with_periods(self):
        report = parse_forecast(sample_payload())
        assert len(report.forecast) == 1
        day = report.forecast[0]
        assert (day.temp_max, day.temp_min, day.wind_max) == (18, 10, 45)
        assert [p.period for p in day.periods] == [
            TimeOfDay.MORNING, TimeOfDay.NOON, TimeOfDay.EVENING, TimeOfDay.NIGHT,
        ]
        by_period = {p.period: p for p in day.periods}
        assert by_period[TimeOfDay.MORNING].temp == 14
        assert by_period[TimeOfDay.NIGHT].temp == 10
        assert by_period[TimeOfDay.EVENING].wind == 50
        assert by_period[TimeOfDay.MORNING].icon is WeatherIcon.CLOUDY
        assert by_period[TimeOfDay.EVENING].icon is WeatherIcon.RAIN
        # Circular mean of 350 and 10 is north, not south
        assert by_period[TimeOfDay.NOON].wind_dir == "N"

    def test_ragged_daily_arrays_truncate_forecast(self):
        """A day missing any daily value is left out rather than filled in."""
        payload = sample_payload()
        payload["daily"]["time"].append("2024-06-02")
        payload["daily"]["temperature_2m_max"].append(17.0)
        payload["daily"]["weather_code"].append(3)
        report = parse_forecast(payload)
        assert [d.date for d in report.forecast] == ["2024-06-01"]
        assert report.forecast[0].temp_max == 18

    def test_empty_daily_value_array_drops_forecast(self):
        payload = sample_payload()
        payload["daily"]["wind_speed_10m_max"] = []
        assert parse_forecast(payload).forecast == []

    def test_current_only(self):
        payload = sample_payload()
        del payload["daily"], payload["hourly"]
        assert parse_forecast(payload).forecast == []

    def test_missing_current_is_malformed(self):
        payload = sample_payload()
        del payload["current"]
        with pytest.raises(MalformedResponse):
            parse_forecast(payload)

    def test_wrong_type_is_malformed(self):
        payload = sample_payload()
        payload["current"]["temperature_2m"] = "warm"
        with pytest.raises(MalformedResponse):
            parse_forecast(payload)


class TestWindHelpers:
    """Test compass helpers."""

    @pytest.mark.parametrize("degrees,expected", [
        (0, "N"), (22.4, "N"), (22.5, "NE"), (90, "E"), (180, "S"), (270, "W"), (337.6, "N"), (-45, "NW"),
    ])
    def test_wind_direction(self, degrees, expected):
        assert wind_direction(degrees) == expected

    def test_average_opposed_is_undefined(self):
        assert average_wind_direction([0, 180]) is None
        assert average_wind_direction([]) is None


class TestOpenMeteoClient:
    """Test HTTP handling with a mocked session."""

    def test_fetch_sends_coordinates(self):
        session = mock_session(sample_payload())
        client = OpenMeteoClient("https://example.test/forecast", timeout=2.0, session=session)

        report = client.fetch(-41.28, 174.77)

        assert report.temp_c == 12
        _, kwargs = session.get.call_args
        assert kwargs["params"]["latitude"] == -41.28
        assert kwargs["params"]["forecast_days"] == 3
        assert kwargs["timeout"] == 2.0

    def test_timeout_mapped(self):
        client = OpenMeteoClient(session=mock_session(exc=requests.exceptions.Timeout("slow")))
        with pytest.raises(FetchTimeout):
            client.fetch(0, 0)

    def test_connection_error_mapped(self):
        client = OpenMeteoClient(session=mock_session(exc=requests.exceptions.ConnectionError("dns")))
        with pytest.raises(TransportFailure):
            client.fetch(0, 0)

    def test_http_error_mapped(self):
        session = mock_session(sample_payload())
        session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("503")
        with pytest.raises(TransportFailure):
            OpenMeteoClient(session=session).fetch(0, 0)

    def test_invalid_json_is_malformed(self):
        session = mock_session(sample_payload())
        session.get.return_value.json.side_effect = ValueError("Expecting value")
        with pytest.raises(MalformedResponse):
            OpenMeteoClient(session=session).fetch(0, 0)

    def test_non_object_is_malformed(self):
        with pytest.raises(MalformedResponse):
            OpenMeteoClient(session=mock_session(["not", "an", "object"])).fetch(0, 0)

    def test_fetch_for_city_uses_catalog_coordinates(self):
        session = mock_session(sample_payload())
        client = OpenMeteoClient(session=session)
        city = City(name="Wellington", code="WLG", country="New Zealand",
                    timezone="Pacific/Auckland", currency="NZD")

        client.fetch_for_city(city)

        params = session.get.call_args.kwargs["params"]
        assert params["latitude"] == pytest.approx(-41.2865)

    def test_fetch_for_unknown_city(self):
        session = mock_session(sample_payload())
        city = City(name="Atlantis", code="ATL", country="Sea", timezone="UTC", currency="USD")
        with pytest.raises(UnknownLocation):
            OpenMeteoClient(session=session).fetch_for_city(city)
        session.get.assert_not_called()
