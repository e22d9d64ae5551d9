"""World clock entries and the time converter widget state."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from nzi.config.model import City
from nzi.timezone.convert import UTC, ConversionResult, Invalid, get_zone

logger = logging.getLogger(__name__)


@dataclass
class CityTime:
    """Current time information for a city."""

    city_name: str
    city_code: str
    datetime: datetime
    offset_hours: float

    @classmethod
    def from_city(cls, city: City, now: Optional[datetime] = None) -> Optional["CityTime"]:
        """Build from a configured city, or None if its zone cannot be resolved."""
        try:
            tz = get_zone(city.timezone)
        except (ValueError, KeyError, OSError) as e:
            logger.warning(f"Cannot resolve timezone {city.timezone!r} for {city.code}: {e}")
            return None
        now = now or datetime.now(UTC)
        local = now.astimezone(tz)
        return cls(
            city_name=city.name,
            city_code=city.code,
            datetime=local,
            offset_hours=local.utcoffset().total_seconds() / 3600.0,
        )

    def time_string(self, use_24_hour: bool = True, show_seconds: bool = True) -> str:
        if use_24_hour:
            fmt = "%H:%M:%S" if show_seconds else "%H:%M"
        else:
            fmt = "%I:%M:%S %p" if show_seconds else "%I:%M %p"
        return self.datetime.strftime(fmt)

    @property
    def hour(self) -> int:
        return self.datetime.hour

    def is_daytime(self) -> bool:
        """Between 6am and 6pm local time."""
        return 6 <= self.hour < 18


def format_time_delta(source: CityTime, target: CityTime) -> str:
    """Offset of target relative to source, e.g. '+13h', '-4h30m', '±0h'."""
    minutes = round((target.offset_hours - source.offset_hours) * 60)
    if minutes == 0:
        return "±0h"
    sign = "+" if minutes > 0 else "-"
    hours, rem = divmod(abs(minutes), 60)
    if rem:
        return f"{sign}{hours}h{rem:02d}m"
    return f"{sign}{hours}h"


def world_clock(cities: Sequence[City], now: Optional[datetime] = None) -> List[CityTime]:
    """CityTime for every city whose zone resolves, in the given order."""
    now = now or datetime.now(UTC)
    times = (CityTime.from_city(city, now) for city in cities)
    return [t for t in times if t is not None]


@dataclass
class TimeConverter:
    """Time converter widget state."""

    from_city_code: str
    to_city_code: str
    input_hour: int = 0
    input_minute: int = 0
    # Buffer for direct time input ("1430" for 14:30)
    input_buffer: str = ""
    result: Optional[ConversionResult] = field(default=None, compare=False)

    @classmethod
    def for_cities(cls, from_code: str, to_code: str, now: Optional[datetime] = None) -> "TimeConverter":
        converter = cls(from_city_code=from_code, to_city_code=to_code)
        converter.set_to_now(now)
        return converter

    def update_result(self, result: Optional[ConversionResult]) -> None:
        self.result = result

    def swap_cities(self) -> None:
        self.from_city_code, self.to_city_code = self.to_city_code, self.from_city_code

    def cycle_to_city(self, city_codes: Sequence[str]) -> None:
        """Move the target to the next city, skipping the source city."""
        if not city_codes:
            return
        codes = list(city_codes)
        current = codes.index(self.to_city_code) if self.to_city_code in codes else 0
        next_idx = (current + 1) % len(codes)
        if codes[next_idx] == self.from_city_code:
            next_idx = (next_idx + 1) % len(codes)
        self.to_city_code = codes[next_idx]

    def increment_hour(self) -> None:
        self.input_hour = (self.input_hour + 1) % 24

    def decrement_hour(self) -> None:
        self.input_hour = (self.input_hour - 1) % 24

    def increment_minute(self) -> None:
        self.input_minute = (self.input_minute + 1) % 60

    def decrement_minute(self) -> None:
        self.input_minute = (self.input_minute - 1) % 60

    def set_to_now(self, now: Optional[datetime] = None) -> None:
        now = now or datetime.now()
        self.input_hour = now.hour
        self.input_minute = now.minute

    def reset(self) -> None:
        """Reset to midnight."""
        self.input_hour = 0
        self.input_minute = 0
        self.input_buffer = ""

    def handle_digit(self, digit: str) -> None:
        if digit.isdigit() and len(self.input_buffer) < 4:
            self.input_buffer += digit
            self._parse_input_buffer()

    def handle_backspace(self) -> None:
        self.input_buffer = self.input_buffer[:-1]
        self._parse_input_buffer()

    def clear_input_buffer(self) -> None:
        self.input_buffer = ""

    def is_typing(self) -> bool:
        return bool(self.input_buffer)

    def _parse_input_buffer(self) -> None:
        digits = [int(c) for c in self.input_buffer]
        if len(digits) == 1:
            self.input_hour, self.input_minute = min(digits[0], 23), 0
        elif len(digits) == 2:
            self.input_hour, self.input_minute = min(digits[0] * 10 + digits[1], 23), 0
        elif len(digits) == 3:
            minute = digits[1] * 10 + digits[2]
            if minute <= 59:
                # "930" -> 9:30
                self.input_hour, self.input_minute = min(digits[0], 23), minute
            else:
                # "176" -> 17:06
                self.input_hour = min(digits[0] * 10 + digits[1], 23)
                self.input_minute = digits[2]
        elif len(digits) == 4:
            self.input_hour = min(digits[0] * 10 + digits[1], 23)
            self.input_minute = min(digits[2] * 10 + digits[3], 59)

    def format_input_time(self) -> str:
        return f"{self.input_hour:02d}:{self.input_minute:02d}"

    def format_input_display(self) -> str:
        """Input time, or the partially typed buffer with a cursor."""
        buf = self.input_buffer
        if not buf:
            return self.format_input_time()
        if len(buf) <= 2:
            return f"{buf}█:__"
        if len(buf) == 3:
            return f"{buf[:2]}:{buf[2]}█_"
        return f"{buf[:2]}:{buf[2:]}"

    def format_result_time(self) -> str:
        if self.result is None:
            return "--:--"
        text = self.result.target_local.strftime("%H:%M")
        if self.result.day_offset < 0:
            text += " (yesterday)"
        elif self.result.day_offset > 0:
            text += " (tomorrow)"
        if isinstance(self.result.anomaly, Invalid):
            text += " [!gap]"
        elif self.result.anomaly is not None:
            text += " [!ambiguous]"
        return text
