"""
Open-Meteo forecast client.

Free, no API key. One request per location returns current conditions,
a 3-day daily forecast and the hourly series used to build
morning/noon/evening/night periods.

API Docs: https://open-meteo.com/en/docs
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

import requests
from pydantic import ValidationError

from nzi.config.model import City
from nzi.errors import FetchTimeout, MalformedResponse, TransportFailure, UnknownLocation
from nzi.weather.conditions import (
    WeatherIcon,
    average_wind_direction,
    weather_description,
    wind_direction,
)
from nzi.weather.schemas import OpenMeteoHourly, OpenMeteoResponse

logger = logging.getLogger(__name__)

FORECAST_DAYS = 3

CURRENT_FIELDS = [
    "temperature_2m",
    "apparent_temperature",
    "relative_humidity_2m",
    "wind_speed_10m",
    "wind_direction_10m",
    "weather_code",
    "is_day",
]
DAILY_FIELDS = ["temperature_2m_max", "temperature_2m_min", "wind_speed_10m_max", "weather_code"]
HOURLY_FIELDS = ["temperature_2m", "wind_speed_10m", "wind_direction_10m", "weather_code"]


class TimeOfDay(str, Enum):
    MORNING = "morning"  # 06-12
    NOON = "noon"  # 12-18
    EVENING = "evening"  # 18-24
    NIGHT = "night"  # 00-06

    @property
    def hour_range(self) -> Tuple[int, int]:
        return _HOUR_RANGES[self]


_HOUR_RANGES = {
    TimeOfDay.NIGHT: (0, 6),
    TimeOfDay.MORNING: (6, 12),
    TimeOfDay.NOON: (12, 18),
    TimeOfDay.EVENING: (18, 24),
}

PERIOD_ORDER = [TimeOfDay.MORNING, TimeOfDay.NOON, TimeOfDay.EVENING, TimeOfDay.NIGHT]


@dataclass(frozen=True)
class PeriodForecast:
    period: TimeOfDay
    temp: int
    wind: int
    wind_dir: str
    icon: WeatherIcon


@dataclass(frozen=True)
class DayForecast:
    date: str
    temp_max: int
    temp_min: int
    wind_max: int
    icon: WeatherIcon
    periods: List[PeriodForecast] = field(default_factory=list)


@dataclass(frozen=True)
class WeatherReport:
    """Current conditions plus a short forecast for one location."""

    temp_c: int
    feels_like_c: int
    humidity: int
    wind_kmph: int
    wind_dir: str
    description: str
    icon: WeatherIcon
    is_day: bool
    observed_at: datetime
    forecast: List[DayForecast] = field(default_factory=list)

    def temp_string(self) -> str:
        return f"{self.temp_c}°C"

    def feels_like_string(self) -> str:
        return f"{self.feels_like_c}°C"


def _period_forecasts(hourly: OpenMeteoHourly, day: int) -> List[PeriodForecast]:
    """Aggregate one day of hourly data into 4 periods."""
    length = min(
        len(hourly.temperature_2m),
        len(hourly.wind_speed_10m),
        len(hourly.wind_direction_10m),
        len(hourly.weather_code),
    )
    periods = []
    for period in PERIOD_ORDER:
        start, end = period.hour_range
        indices = [day * 24 + hour for hour in range(start, end) if day * 24 + hour < length]
        if not indices:
            continue

        temps = [hourly.temperature_2m[i] for i in indices]
        winds = [hourly.wind_speed_10m[i] for i in indices]
        directions = [hourly.wind_direction_10m[i] for i in indices]
        mode_code = Counter(hourly.weather_code[i] for i in indices).most_common(1)[0][0]
        mean_dir = average_wind_direction(directions)

        periods.append(PeriodForecast(
            period=period,
            temp=round(sum(temps) / len(temps)),
            wind=round(max(winds)),
            wind_dir=wind_direction(mean_dir) if mean_dir is not None else "?",
            icon=WeatherIcon.from_wmo_code(mode_code),
        ))
    return periods


def parse_forecast(payload: dict, observed_at: Optional[datetime] = None) -> WeatherReport:
    """
    Turn an Open-Meteo JSON payload into a WeatherReport.

    Raises:
        MalformedResponse: if required fields are missing or mistyped
    """
    try:
        data = OpenMeteoResponse.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponse(f"invalid weather response: {e.error_count()} problem(s)") from e

    current = data.current
    forecast: List[DayForecast] = []
    if data.daily is not None:
        daily = data.daily
        # Only days with every daily value present
        days = min(
            len(daily.time),
            len(daily.temperature_2m_max),
            len(daily.temperature_2m_min),
            len(daily.wind_speed_10m_max),
            len(daily.weather_code),
            FORECAST_DAYS,
        )
        if days < min(len(daily.time), FORECAST_DAYS):
            logger.warning(f"Daily forecast arrays are ragged, keeping {days} day(s)")
        for i in range(days):
            forecast.append(DayForecast(
                date=daily.time[i],
                temp_max=round(daily.temperature_2m_max[i]),
                temp_min=round(daily.temperature_2m_min[i]),
                wind_max=round(daily.wind_speed_10m_max[i]),
                icon=WeatherIcon.from_wmo_code(daily.weather_code[i]),
                periods=_period_forecasts(data.hourly, i) if data.hourly is not None else [],
            ))

    return WeatherReport(
        temp_c=round(current.temperature_2m),
        feels_like_c=round(current.apparent_temperature),
        humidity=current.relative_humidity_2m,
        wind_kmph=round(current.wind_speed_10m),
        wind_dir=wind_direction(current.wind_direction_10m),
        description=weather_description(current.weather_code),
        icon=WeatherIcon.from_wmo_code(current.weather_code),
        is_day=current.is_day == 1,
        observed_at=observed_at or datetime.now(timezone.utc),
        forecast=forecast,
    )


class OpenMeteoClient:
    """Client for the Open-Meteo forecast endpoint."""

    def __init__(
        self,
        base_url: str = "https://api.open-meteo.com/v1/forecast",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Open-Meteo client.

        Args:
            base_url: Forecast endpoint
            timeout: Per-request timeout in seconds
            session: Optional requests session (tests inject a mock)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "User-Agent": "nzi-cli"})

    def fetch(self, latitude: float, longitude: float) -> WeatherReport:
        """Fetch current weather and forecast for a coordinate."""
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": ",".join(CURRENT_FIELDS),
            "daily": ",".join(DAILY_FIELDS),
            "hourly": ",".join(HOURLY_FIELDS),
            "timezone": "auto",
            "forecast_days": FORECAST_DAYS,
        }

        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise FetchTimeout(f"weather request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise TransportFailure(f"weather request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"weather response is not JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MalformedResponse("weather response is not an object")
        return parse_forecast(payload)

    def fetch_for_city(self, city: City) -> WeatherReport:
        """Fetch weather for a configured city using its (catalog) coordinates."""
        coords = city.coordinates
        if coords is None:
            raise UnknownLocation(f"no coordinates known for {city.name} ({city.code})")
        logger.info(f"Fetching weather for {city.code} at {coords[0]:.3f},{coords[1]:.3f}")
        return self.fetch(*coords)
