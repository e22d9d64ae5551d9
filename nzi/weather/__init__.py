"""Weather data client module."""

from nzi.weather.conditions import WeatherIcon, weather_description, wind_direction
from nzi.weather.open_meteo import (
    DayForecast,
    OpenMeteoClient,
    PeriodForecast,
    TimeOfDay,
    WeatherReport,
    parse_forecast,
)

__all__ = [
    "DayForecast",
    "OpenMeteoClient",
    "PeriodForecast",
    "TimeOfDay",
    "WeatherIcon",
    "WeatherReport",
    "parse_forecast",
    "weather_description",
    "wind_direction",
]
