"""
Built-in city catalog - single source of truth for default cities.

Every entry carries the coordinates used for weather lookup, so configured
cities without explicit coordinates can still be resolved by code or name.
NZ map cities (AKL, WLG, CHC, DUD) double as weather panel locations.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CatalogCity:
    """A city known to the dashboard out of the box."""

    name: str
    code: str  # Short display code: 'WLG', 'BOS', 'KL'
    country: str
    timezone: str  # IANA timezone: 'Pacific/Auckland'
    currency: str  # ISO 4217: 'NZD'
    latitude: float
    longitude: float

    @property
    def coordinates(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


CITIES: Dict[str, CatalogCity] = {
    city.code: city
    for city in (
        CatalogCity("Wellington", "WLG", "New Zealand", "Pacific/Auckland", "NZD", -41.2865, 174.7762),
        CatalogCity("Auckland", "AKL", "New Zealand", "Pacific/Auckland", "NZD", -36.8485, 174.7633),
        CatalogCity("Christchurch", "CHC", "New Zealand", "Pacific/Auckland", "NZD", -43.5321, 172.6362),
        CatalogCity("Dunedin", "DUD", "New Zealand", "Pacific/Auckland", "NZD", -45.8788, 170.5028),
        CatalogCity("Boston", "BOS", "USA", "America/New_York", "USD", 42.3601, -71.0589),
        CatalogCity("London", "LDN", "United Kingdom", "Europe/London", "GBP", 51.5074, -0.1278),
        CatalogCity("Los Angeles", "LAX", "USA", "America/Los_Angeles", "USD", 34.0522, -118.2437),
        CatalogCity("Austin", "AUS", "USA", "America/Chicago", "USD", 30.2672, -97.7431),
        CatalogCity("Paris", "PAR", "France", "Europe/Paris", "EUR", 48.8566, 2.3522),
        CatalogCity("Berlin", "BER", "Germany", "Europe/Berlin", "EUR", 52.5200, 13.4050),
        CatalogCity("Sydney", "SYD", "Australia", "Australia/Sydney", "AUD", -33.8688, 151.2093),
        CatalogCity("Tokyo", "TYO", "Japan", "Asia/Tokyo", "JPY", 35.6762, 139.6503),
        CatalogCity("Singapore", "SIN", "Singapore", "Asia/Singapore", "SGD", 1.3521, 103.8198),
        CatalogCity("Kuala Lumpur", "KL", "Malaysia", "Asia/Kuala_Lumpur", "MYR", 3.1390, 101.6869),
        CatalogCity("Rio", "RIO", "Brazil", "America/Sao_Paulo", "BRL", -22.9068, -43.1729),
        CatalogCity("Addis Ababa", "ADD", "Ethiopia", "Africa/Addis_Ababa", "ETB", 9.0054, 38.7636),
        CatalogCity("Dhaka", "DAC", "Bangladesh", "Asia/Dhaka", "BDT", 23.8103, 90.4125),
        CatalogCity("Beijing", "BJS", "China", "Asia/Shanghai", "CNY", 39.9042, 116.4074),
        CatalogCity("San Francisco", "SFO", "USA", "America/Los_Angeles", "USD", 37.7749, -122.4194),
    )
}

# Cities drawn on the NZ map, north to south
NZ_MAP_CODES: List[str] = ["AKL", "WLG", "CHC", "DUD"]

DEFAULT_CURRENT_CODE = "WLG"
DEFAULT_HOME_CODE = "BOS"
DEFAULT_TRACKED_CODES: List[str] = [
    "LDN", "LAX", "AUS", "PAR", "BER", "SYD", "TYO",
    "SIN", "KL", "RIO", "ADD", "DAC", "BJS",
]

CITY_CODES = list(CITIES.keys())


def get_city(code: str) -> CatalogCity:
    """Get catalog city by code (case-insensitive)."""
    city = CITIES.get(code.upper())
    if city is None:
        raise ValueError(f"Unknown city: {code}. Available: {CITY_CODES}")
    return city


def find_coordinates(code: str, name: str = "") -> Optional[Tuple[float, float]]:
    """
    Look up coordinates for a city, by code first and then by name.

    Name matching is a case-insensitive substring test in either direction,
    so "Wellington Central" still resolves to Wellington.
    """
    city = CITIES.get(code.upper()) if code else None
    if city is not None:
        return city.coordinates

    needle = name.strip().lower()
    if not needle:
        return None
    for city in CITIES.values():
        candidate = city.name.lower()
        if candidate in needle or needle in candidate:
            return city.coordinates
    return None
