"""Recognised ISO 4217 currency codes."""

from typing import FrozenSet

KNOWN_CURRENCIES: FrozenSet[str] = frozenset({
    "AED", "ARS", "AUD", "BDT", "BGN", "BRL", "CAD", "CHF", "CLP", "CNY",
    "COP", "CZK", "DKK", "EGP", "ETB", "EUR", "FJD", "GBP", "HKD", "HUF",
    "IDR", "ILS", "INR", "ISK", "JPY", "KES", "KRW", "LKR", "MAD", "MXN",
    "MYR", "NGN", "NOK", "NZD", "PEN", "PHP", "PKR", "PLN", "QAR", "RON",
    "RSD", "RUB", "SAR", "SEK", "SGD", "THB", "TRY", "TWD", "UAH", "USD",
    "VND", "WST", "XPF", "ZAR", "TOP",
})


def is_known_currency(code: str) -> bool:
    """True for a recognised three-letter code (case-insensitive)."""
    return len(code) == 3 and code.upper() in KNOWN_CURRENCIES
