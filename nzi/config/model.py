"""
Typed config model persisted in the user's YAML file.

Pydantic models give structural validation (types, required fields) on
load. Semantic rules (unique codes, resolvable timezones, known
currencies) live in nzi.config.validation so a draft can be checked
without raising on the first problem.
"""

import os
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from nzi.config.cities import (
    CITIES,
    DEFAULT_CURRENT_CODE,
    DEFAULT_HOME_CODE,
    DEFAULT_TRACKED_CODES,
    CatalogCity,
    find_coordinates,
)


class City(BaseModel):
    """A configured city with timezone and currency info."""

    name: str
    code: str
    country: str
    timezone: str
    currency: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = {"extra": "ignore"}

    @classmethod
    def from_catalog(cls, entry: CatalogCity) -> "City":
        return cls(
            name=entry.name,
            code=entry.code,
            country=entry.country,
            timezone=entry.timezone,
            currency=entry.currency,
        )

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        """Explicit coordinates, else the catalog entry for this code or name."""
        if self.latitude is not None and self.longitude is not None:
            return (self.latitude, self.longitude)
        return find_coordinates(self.code, self.name)

    def same_code(self, code: str) -> bool:
        return self.code.upper() == code.upper()


class DisplaySettings(BaseModel):
    """Display preferences."""

    show_seconds: bool = True
    use_24_hour: bool = True
    show_animations: bool = True
    animation_speed_ms: int = Field(default=100, gt=0)
    # Editor command for /edit (falls back to $EDITOR, then nvim)
    editor: Optional[str] = None

    def get_editor(self) -> str:
        return self.editor or os.environ.get("EDITOR") or "nvim"


DEFAULT_CURRENCY_PAIRS: List[Tuple[str, str]] = [
    ("NZD", "USD"),
    ("NZD", "EUR"),
    ("NZD", "GBP"),
    ("NZD", "AUD"),
    ("NZD", "JPY"),
]


class CurrencySettings(BaseModel):
    """Currency converter preferences."""

    # When true the pair follows current city -> home city currencies
    sync_with_cities: bool = True
    base: Optional[str] = None
    quote: Optional[str] = None
    amount: float = Field(default=100.0, ge=0)
    pairs: List[Tuple[str, str]] = Field(default_factory=lambda: list(DEFAULT_CURRENCY_PAIRS))


class MapSettings(BaseModel):
    """Map panel preferences."""

    # City code highlighted on the map and shown in the weather panel
    focus_code: Optional[str] = None
    show_labels: bool = True


class Config(BaseModel):
    """Main configuration structure."""

    # Where the user currently lives in NZ
    current_city: City
    # The user's home city overseas
    home_city: City
    # Additional cities to track, in display order
    tracked_cities: List[City] = Field(default_factory=list)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    currency: CurrencySettings = Field(default_factory=CurrencySettings)
    map: MapSettings = Field(default_factory=MapSettings)

    def all_cities(self) -> List[City]:
        """Current, home, then tracked cities."""
        return [self.current_city, self.home_city, *self.tracked_cities]

    def all_city_codes(self) -> List[str]:
        return [city.code for city in self.all_cities()]

    def find_city(self, code: str) -> Optional[City]:
        """Find a configured city by code (case-insensitive)."""
        for city in self.all_cities():
            if city.same_code(code):
                return city
        return None

    def currency_pair(self) -> Tuple[str, str]:
        """The effective (base, quote) pair for the currency converter."""
        if self.currency.sync_with_cities or not (self.currency.base and self.currency.quote):
            return (self.current_city.currency.upper(), self.home_city.currency.upper())
        return (self.currency.base.upper(), self.currency.quote.upper())

    def focus_city(self) -> City:
        """City shown in the weather panel; defaults to the current city."""
        code = self.map.focus_code
        if code:
            city = self.find_city(code)
            if city is not None:
                return city
            if code.upper() in CITIES:
                return City.from_catalog(CITIES[code.upper()])
        return self.current_city

    def to_document(self) -> dict:
        """Plain dict for YAML serialisation (unset coordinates omitted)."""
        data = self.model_dump(mode="json")
        for city in [data["current_city"], data["home_city"], *data["tracked_cities"]]:
            for key in ("latitude", "longitude"):
                if city.get(key) is None:
                    city.pop(key, None)
        return data


def default_display() -> DisplaySettings:
    return DisplaySettings()


def default_currency() -> CurrencySettings:
    return CurrencySettings()


def default_map() -> MapSettings:
    return MapSettings()


def default_cities() -> Tuple[City, City, List[City]]:
    """Built-in (current, home, tracked) cities."""
    return (
        City.from_catalog(CITIES[DEFAULT_CURRENT_CODE]),
        City.from_catalog(CITIES[DEFAULT_HOME_CODE]),
        [City.from_catalog(CITIES[code]) for code in DEFAULT_TRACKED_CODES],
    )


def default_config() -> Config:
    """Built-in default configuration."""
    current, home, tracked = default_cities()
    return Config(
        current_city=current,
        home_city=home,
        tracked_cities=tracked,
        display=default_display(),
        currency=default_currency(),
        map=default_map(),
    )
