"""Tests for the exchange rate client and currency converter state."""

from unittest.mock import MagicMock

import pytest
import requests

from nzi.cache.entry import CacheStatus
from nzi.errors import FetchTimeout, MalformedResponse, TransportFailure
from nzi.exchange.client import ExchangeRateClient, pair_key, split_pair_key
from nzi.exchange.converter import CurrencyConverter


def mock_session(payload=None, exc=None):
    session = MagicMock()
    session.headers = {}
    if exc is not None:
        session.get.side_effect = exc
    else:
        session.get.return_value.json.return_value = payload
    return session


RATES = {"base": "NZD", "rates": {"NZD": 1, "USD": 0.6123, "EUR": 0.5512, "BAD": "x", "FLAG": True}}


class TestPairKeys:
    def test_pair_key(self):
        assert pair_key("nzd", "usd") == "NZD_USD"
        assert split_pair_key("NZD_USD") == ("NZD", "USD")


class TestExchangeRateClient:
    """Test HTTP handling with a mocked session."""

    def test_fetch_rates_url_and_parsing(self):
        session = mock_session(RATES)
        client = ExchangeRateClient("https://example.test/v4/latest/", session=session)

        rates = client.fetch_rates("nzd")

        assert session.get.call_args.args[0] == "https://example.test/v4/latest/NZD"
        assert rates == {"NZD": 1.0, "USD": 0.6123, "EUR": 0.5512}

    def test_fetch_rate(self):
        client = ExchangeRateClient(session=mock_session(RATES))
        assert client.fetch_rate("NZD", "usd") == pytest.approx(0.6123)

    def test_same_currency_needs_no_request(self):
        session = mock_session(RATES)
        assert ExchangeRateClient(session=session).fetch_rate("EUR", "eur") == 1.0
        session.get.assert_not_called()

    def test_missing_quote_is_malformed(self):
        with pytest.raises(MalformedResponse):
            ExchangeRateClient(session=mock_session(RATES)).fetch_rate("NZD", "JPY")

    def test_missing_rates_object_is_malformed(self):
        with pytest.raises(MalformedResponse):
            ExchangeRateClient(session=mock_session({"result": "error"})).fetch_rates("NZD")

    def test_timeout_mapped(self):
        client = ExchangeRateClient(session=mock_session(exc=requests.exceptions.Timeout()))
        with pytest.raises(FetchTimeout):
            client.fetch_rates("NZD")

    def test_http_error_mapped(self):
        session = mock_session(RATES)
        session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
        with pytest.raises(TransportFailure):
            ExchangeRateClient(session=session).fetch_rates("XXX")


class TestCurrencyConverter:
    """Test converter widget state."""

    def test_no_rate_is_unavailable(self):
        converter = CurrencyConverter.for_pair("NZD", "USD")
        assert converter.to_amount is None
        assert converter.format_result() == "USD unavailable"
        assert converter.needs_rate_refresh()

    def test_fresh_rate(self):
        converter = CurrencyConverter.for_pair("nzd", "usd", 250)
        converter.update_rate(0.6, CacheStatus.FRESH)
        assert converter.to_amount == pytest.approx(150.0)
        assert converter.format_result() == "150.00 USD"
        assert not converter.needs_rate_refresh()

    def test_stale_rate_marked(self):
        converter = CurrencyConverter.for_pair("NZD", "USD")
        converter.update_rate(0.6, CacheStatus.STALE)
        assert converter.format_result() == "60.00 USD (stale)"

    def test_swap_clears_rate(self):
        """Swapping never shows a rate the cache has not fetched for the new pair."""
        converter = CurrencyConverter.for_pair("NZD", "USD")
        converter.update_rate(0.6, CacheStatus.FRESH)
        converter.swap_currencies()
        assert converter.pair == ("USD", "NZD")
        assert converter.rate is None
        assert converter.needs_rate_refresh()

    def test_cycle_pairs(self):
        converter = CurrencyConverter.for_pair("NZD", "USD")
        pairs = [("NZD", "USD"), ("NZD", "EUR")]
        converter.cycle_pair(pairs)
        assert converter.key == "NZD_EUR"
        converter.cycle_pair(pairs)
        assert converter.key == "NZD_USD"

    def test_cycle_starts_after_current_pair(self):
        pairs = [("NZD", "USD"), ("NZD", "EUR"), ("NZD", "GBP"), ("NZD", "AUD")]
        converter = CurrencyConverter.for_pair("nzd", "gbp", pairs=pairs)
        assert converter.pair_index == 2
        converter.cycle_pair(pairs)
        assert converter.key == "NZD_AUD"
        converter.cycle_pair(pairs)
        assert converter.key == "NZD_USD"

    def test_cycle_from_unlisted_pair_starts_at_first(self):
        pairs = [("NZD", "USD"), ("NZD", "EUR")]
        converter = CurrencyConverter.for_pair("AUD", "JPY", pairs=pairs)
        converter.cycle_pair(pairs)
        assert converter.key == "NZD_USD"

    def test_amount_entry(self):
        converter = CurrencyConverter.for_pair("NZD", "USD")
        converter.clear_input()
        for char in "12.5.0x":
            converter.handle_input(char)
        assert converter.input_buffer == "12.50"
        assert converter.from_amount == 12.5
        converter.handle_backspace()
        converter.handle_backspace()
        converter.handle_backspace()
        assert converter.from_amount == 12.0
        converter.clear_input()
        converter.handle_input(".")
        assert converter.from_amount == 0.0
