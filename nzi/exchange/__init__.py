"""Exchange rates and currency conversion."""

from nzi.exchange.client import ExchangeRateClient, pair_key, split_pair_key
from nzi.exchange.converter import CurrencyConverter

__all__ = [
    "CurrencyConverter",
    "ExchangeRateClient",
    "pair_key",
    "split_pair_key",
]
