"""
Exchange rate client for the free exchangerate-api v4 endpoint.

No authentication. One request returns every rate for a base currency;
the cache layer stores the one pair it asked for under "BASE_QUOTE".
"""

import logging
from typing import Dict, Optional

import requests

from nzi.errors import FetchTimeout, MalformedResponse, TransportFailure

logger = logging.getLogger(__name__)


def pair_key(base: str, quote: str) -> str:
    """Cache key for a currency pair."""
    return f"{base.upper()}_{quote.upper()}"


def split_pair_key(key: str) -> tuple:
    base, _, quote = key.partition("_")
    return base, quote


class ExchangeRateClient:
    """Client for https://api.exchangerate-api.com/v4/latest/{BASE}."""

    def __init__(
        self,
        base_url: str = "https://api.exchangerate-api.com/v4/latest",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "User-Agent": "nzi-cli"})

    def fetch_rates(self, base: str) -> Dict[str, float]:
        """
        Fetch all rates for a base currency.

        Raises:
            FetchTimeout, TransportFailure, MalformedResponse
        """
        url = f"{self.base_url}/{base.upper()}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise FetchTimeout(f"exchange rate request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise TransportFailure(f"exchange rate request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"exchange rate response is not JSON: {e}") from e

        rates = payload.get("rates") if isinstance(payload, dict) else None
        if not isinstance(rates, dict):
            raise MalformedResponse("exchange rate response has no 'rates' object")

        parsed = {}
        for code, value in rates.items():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                parsed[str(code).upper()] = float(value)
        return parsed

    def fetch_rate(self, base: str, quote: str) -> float:
        """Fetch the rate for 1 unit of base in quote."""
        if base.upper() == quote.upper():
            return 1.0
        rates = self.fetch_rates(base)
        rate = rates.get(quote.upper())
        if rate is None or rate <= 0:
            raise MalformedResponse(f"currency {quote.upper()} not found in {base.upper()} rates")
        logger.info(f"Rate {pair_key(base, quote)} = {rate:.4f}")
        return rate
