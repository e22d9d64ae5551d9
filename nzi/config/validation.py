"""
Semantic validation of a candidate Config.

Validation is all-or-nothing: collect_errors() reports every problem it
finds, and validate() rejects the candidate in full when the list is not
empty. Callers decide whether to keep editing or discard.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import List, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from nzi.config.cities import CITIES
from nzi.config.currencies import is_known_currency
from nzi.config.model import City, Config

logger = logging.getLogger(__name__)

REQUIRED_CITY_FIELDS = ("name", "code", "country", "timezone", "currency")


class ConfigErrorKind(str, Enum):
    DUPLICATE_CITY_CODE = "DuplicateCityCode"
    INVALID_TIMEZONE = "InvalidTimezone"
    EMPTY_REQUIRED_FIELD = "EmptyRequiredField"
    UNKNOWN_CURRENCY_CODE = "UnknownCurrencyCode"
    UNKNOWN_CITY_CODE = "UnknownCityCode"


@dataclass(frozen=True)
class ConfigError:
    """One itemized validation problem."""

    kind: ConfigErrorKind
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ConfigValidationError(ValueError):
    """Raised by validate() with every problem found in the candidate."""

    def __init__(self, errors: Sequence[ConfigError]):
        self.errors = list(errors)
        summary = "; ".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} config error(s): {summary}")


@lru_cache(maxsize=512)
def is_valid_timezone(name: str) -> bool:
    """True if name resolves to an IANA zone."""
    if not name or name != name.strip():
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False
    return True


def _city_slots(config: Config) -> List[tuple]:
    slots = [("current_city", config.current_city), ("home_city", config.home_city)]
    slots.extend((f"tracked_cities[{i}]", city) for i, city in enumerate(config.tracked_cities))
    return slots


def _check_city(path: str, city: City) -> List[ConfigError]:
    errors = []
    for name in REQUIRED_CITY_FIELDS:
        if not str(getattr(city, name)).strip():
            errors.append(ConfigError(
                ConfigErrorKind.EMPTY_REQUIRED_FIELD, f"{path}.{name}", f"{name} must not be empty",
            ))

    if city.timezone.strip() and not is_valid_timezone(city.timezone):
        errors.append(ConfigError(
            ConfigErrorKind.INVALID_TIMEZONE,
            f"{path}.timezone",
            f"unknown timezone '{city.timezone}' for {city.name or city.code}",
        ))

    if city.currency.strip() and not is_known_currency(city.currency):
        errors.append(ConfigError(
            ConfigErrorKind.UNKNOWN_CURRENCY_CODE,
            f"{path}.currency",
            f"unknown currency '{city.currency}' for {city.name or city.code}",
        ))
    return errors


def _check_currency_code(path: str, code) -> List[ConfigError]:
    if code is None or not str(code).strip():
        return [ConfigError(ConfigErrorKind.EMPTY_REQUIRED_FIELD, path, "required when sync is off")]
    if not is_known_currency(code):
        return [ConfigError(ConfigErrorKind.UNKNOWN_CURRENCY_CODE, path, f"unknown currency '{code}'")]
    return []


def collect_errors(config: Config) -> List[ConfigError]:
    """Return every validation problem in config (empty list means valid)."""
    errors: List[ConfigError] = []
    seen = {}

    for path, city in _city_slots(config):
        errors.extend(_check_city(path, city))

        key = city.code.strip().upper()
        if not key:
            continue
        if key in seen:
            errors.append(ConfigError(
                ConfigErrorKind.DUPLICATE_CITY_CODE,
                f"{path}.code",
                f"code '{city.code}' already used by {seen[key]}",
            ))
        else:
            seen[key] = path

    currency = config.currency
    if not currency.sync_with_cities:
        errors.extend(_check_currency_code("currency.base", currency.base))
        errors.extend(_check_currency_code("currency.quote", currency.quote))
    for i, (base, quote) in enumerate(currency.pairs):
        for side, code in (("base", base), ("quote", quote)):
            if not is_known_currency(code):
                errors.append(ConfigError(
                    ConfigErrorKind.UNKNOWN_CURRENCY_CODE,
                    f"currency.pairs[{i}].{side}",
                    f"unknown currency '{code}'",
                ))

    focus = config.map.focus_code
    if focus and focus.upper() not in seen and focus.upper() not in CITIES:
        errors.append(ConfigError(
            ConfigErrorKind.UNKNOWN_CITY_CODE, "map.focus_code", f"no city with code '{focus}'",
        ))

    return errors


def validate(config: Config) -> Config:
    """
    Validate config in full.

    Returns:
        The same config when valid

    Raises:
        ConfigValidationError: with every problem found
    """
    errors = collect_errors(config)
    if errors:
        logger.debug(f"Config rejected with {len(errors)} error(s)")
        raise ConfigValidationError(errors)
    return config
