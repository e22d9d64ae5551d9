"""
Pydantic schemas for Open-Meteo forecast responses.

Only the fields the dashboard requests are modelled; anything else in the
payload is ignored.
"""

from typing import List, Optional

from pydantic import BaseModel


class OpenMeteoCurrent(BaseModel):
    temperature_2m: float
    apparent_temperature: float
    relative_humidity_2m: int
    wind_speed_10m: float
    wind_direction_10m: float
    weather_code: int
    is_day: int

    model_config = {"extra": "ignore"}


class OpenMeteoDaily(BaseModel):
    time: List[str]
    temperature_2m_max: List[float]
    temperature_2m_min: List[float]
    wind_speed_10m_max: List[float]
    weather_code: List[int]

    model_config = {"extra": "ignore"}


class OpenMeteoHourly(BaseModel):
    time: List[str]
    temperature_2m: List[float]
    wind_speed_10m: List[float]
    wind_direction_10m: List[float]
    weather_code: List[int]

    model_config = {"extra": "ignore"}


class OpenMeteoResponse(BaseModel):
    current: OpenMeteoCurrent
    daily: Optional[OpenMeteoDaily] = None
    hourly: Optional[OpenMeteoHourly] = None

    model_config = {"extra": "ignore"}
