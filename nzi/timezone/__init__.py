"""Time zone conversion and world clock."""

from nzi.timezone.clock import CityTime, TimeConverter, format_time_delta, world_clock
from nzi.timezone.convert import (
    Ambiguous,
    ConversionResult,
    Invalid,
    convert,
    convert_wall_time,
    format_offset,
    resolve_local,
)

__all__ = [
    "Ambiguous",
    "CityTime",
    "ConversionResult",
    "Invalid",
    "TimeConverter",
    "convert",
    "convert_wall_time",
    "format_offset",
    "format_time_delta",
    "resolve_local",
    "world_clock",
]
