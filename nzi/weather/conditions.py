"""WMO weather codes, icons and wind direction helpers (Open-Meteo uses WMO codes)."""

import math
from enum import Enum
from typing import Optional, Sequence


class WeatherIcon(str, Enum):
    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    FOG = "fog"
    DRIZZLE = "drizzle"
    RAIN = "rain"
    HEAVY_RAIN = "heavy_rain"
    SNOW = "snow"
    THUNDERSTORM = "thunderstorm"
    UNKNOWN = "unknown"

    @classmethod
    def from_wmo_code(cls, code: int) -> "WeatherIcon":
        if code == 0:
            return cls.SUNNY
        if code in (1, 2):
            return cls.PARTLY_CLOUDY
        if code == 3:
            return cls.CLOUDY
        if code in (45, 48):
            return cls.FOG
        if code in (51, 53, 55, 56, 57):
            return cls.DRIZZLE
        if code in (61, 63, 80, 81):
            return cls.RAIN
        if code in (65, 66, 67, 82):
            return cls.HEAVY_RAIN
        if code in (71, 73, 75, 77, 85, 86):
            return cls.SNOW
        if code in (95, 96, 99):
            return cls.THUNDERSTORM
        return cls.UNKNOWN

    def symbol(self, is_day: bool = True) -> str:
        if self is WeatherIcon.SUNNY:
            return "☀" if is_day else "☾"
        if self is WeatherIcon.PARTLY_CLOUDY and is_day:
            return "⛅"
        return _SYMBOLS[self]


_SYMBOLS = {
    WeatherIcon.PARTLY_CLOUDY: "☁",
    WeatherIcon.CLOUDY: "☁",
    WeatherIcon.FOG: "🌫",
    WeatherIcon.DRIZZLE: "🌦",
    WeatherIcon.RAIN: "🌧",
    WeatherIcon.HEAVY_RAIN: "🌧",
    WeatherIcon.SNOW: "❄",
    WeatherIcon.THUNDERSTORM: "⛈",
    WeatherIcon.UNKNOWN: "?",
}


def weather_description(code: int) -> str:
    if code == 0:
        return "Clear sky"
    if code == 1:
        return "Mainly clear"
    if code == 2:
        return "Partly cloudy"
    if code == 3:
        return "Overcast"
    if code in (45, 48):
        return "Foggy"
    if code in (51, 53, 55):
        return "Drizzle"
    if code in (56, 57):
        return "Freezing drizzle"
    if code in (61, 63, 65):
        return "Rain"
    if code in (66, 67):
        return "Freezing rain"
    if code in (71, 73, 75):
        return "Snow"
    if code == 77:
        return "Snow grains"
    if 80 <= code <= 82:
        return "Rain showers"
    if code in (85, 86):
        return "Snow showers"
    if code == 95:
        return "Thunderstorm"
    if code in (96, 99):
        return "Thunderstorm with hail"
    return "Unknown"


COMPASS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


def wind_direction(degrees: float) -> str:
    """8-point compass direction for a bearing in degrees."""
    return COMPASS[int((degrees % 360 + 22.5) // 45) % 8]


def average_wind_direction(degrees: Sequence[float]) -> Optional[float]:
    """Circular mean of bearings, or None when empty or perfectly opposed."""
    if not degrees:
        return None
    sin_sum = sum(math.sin(math.radians(d)) for d in degrees)
    cos_sum = sum(math.cos(math.radians(d)) for d in degrees)
    if abs(sin_sum) < 1e-9 and abs(cos_sum) < 1e-9:
        return None
    return math.degrees(math.atan2(sin_sum, cos_sum)) % 360
