"""
Tests for the fetch/cache/stale engine and background refresher.

Includes:
- DataCache freshness, stale-on-failure and unavailable states
- Bounded retry on startup fetches
- BackgroundRefresher ordering, dedupe and orphan handling
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from nzi.cache.entry import CacheStatus
from nzi.cache.refresher import BackgroundRefresher
from nzi.cache.store import DataCache
from nzi.errors import FetchTimeout, MalformedResponse, TransportFailure
from nzi.utils.retry import create_retry_decorator, with_retry


@pytest.fixture
def cache(clock):
    return DataCache("exchange_rate", timedelta(minutes=10), clock)


class TestDataCache:
    """Test DataCache states."""

    def test_fresh_entry_not_refetched(self, cache):
        fetcher = MagicMock(return_value=0.61)
        cache.get_or_refresh("NZD_USD", fetcher)
        lookup = cache.get_or_refresh("NZD_USD", fetcher)
        assert fetcher.call_count == 1
        assert lookup.status is CacheStatus.FRESH
        assert lookup.value == 0.61

    def test_expired_entry_refetched(self, cache, clock):
        fetcher = MagicMock(side_effect=[0.61, 0.62])
        cache.get_or_refresh("NZD_USD", fetcher)
        clock.advance(minutes=11)
        assert cache.lookup("NZD_USD").status is CacheStatus.STALE
        lookup = cache.get_or_refresh("NZD_USD", fetcher)
        assert lookup.value == 0.62
        assert lookup.status is CacheStatus.FRESH

    def test_failure_keeps_last_known_good(self, cache, clock):
        """A failed refresh serves the old value marked stale."""
        cache.get_or_refresh("NZD_USD", MagicMock(return_value=0.61))
        clock.advance(minutes=11)

        lookup = cache.get_or_refresh("NZD_USD", MagicMock(side_effect=TransportFailure("offline")))

        assert lookup.status is CacheStatus.STALE
        assert lookup.value == 0.61
        assert lookup.error == "offline"
        assert cache.get("NZD_USD").fetched_at == clock() - timedelta(minutes=11)

    def test_failure_before_expiry_marks_stale(self, cache):
        cache.record_success("NZD_USD", 0.61)
        cache.record_failure("NZD_USD", FetchTimeout("slow"))
        assert cache.lookup("NZD_USD").status is CacheStatus.STALE

    def test_never_fetched_is_unavailable(self, cache):
        """No value is invented when nothing was ever fetched."""
        lookup = cache.get_or_refresh("NZD_XXX", MagicMock(side_effect=MalformedResponse("bad json")))
        assert lookup.status is CacheStatus.UNAVAILABLE
        assert lookup.value is None
        assert not lookup.available
        assert cache.lookup("NZD_XXX").error == "bad json"

    def test_success_after_failure_is_fresh(self, cache):
        cache.get_or_refresh("NZD_USD", MagicMock(side_effect=TransportFailure("down")))
        lookup = cache.get_or_refresh("NZD_USD", MagicMock(return_value=0.6))
        assert lookup.status is CacheStatus.FRESH
        assert lookup.error is None

    def test_bounded_retry(self, cache):
        fetcher = MagicMock(side_effect=[FetchTimeout("t1"), FetchTimeout("t2"), 0.6])
        lookup = cache.get_or_refresh("NZD_USD", with_retry(lambda: fetcher(), 3, 0, 0))
        assert fetcher.call_count == 3
        assert lookup.value == 0.6

    def test_retry_gives_up(self, cache):
        fetcher = MagicMock(side_effect=FetchTimeout("timeout"))
        lookup = cache.get_or_refresh("NZD_USD", with_retry(lambda: fetcher(), 2, 0, 0))
        assert fetcher.call_count == 2
        assert lookup.status is CacheStatus.UNAVAILABLE

    def test_non_network_errors_propagate(self, cache):
        with pytest.raises(ZeroDivisionError):
            cache.get_or_refresh("NZD_USD", MagicMock(side_effect=ZeroDivisionError()))

    def test_custom_ttl(self, cache, clock):
        cache.record_success("NZD_USD", 0.6, ttl=timedelta(minutes=1))
        clock.advance(minutes=2)
        assert cache.needs_refresh("NZD_USD")

    def test_set_active_keys_drops_orphans(self, cache):
        cache.record_success("NZD_USD", 0.6)
        cache.record_success("NZD_EUR", 0.55)
        dropped = cache.set_active_keys(["NZD_EUR", "NZD_GBP"])
        assert dropped == ["NZD_USD"]
        assert "NZD_USD" not in cache
        assert cache.missing_keys() == ["NZD_GBP"]
        assert not cache.is_active("NZD_USD")


class TestRetryDecorator:
    """Test tenacity retry wiring."""

    def test_only_network_errors_retried(self):
        calls = []

        @create_retry_decorator(max_attempts=3, min_wait=0, max_wait=0)
        def flaky():
            calls.append(1)
            raise KeyError("bug")

        with pytest.raises(KeyError):
            flaky()
        assert len(calls) == 1

    def test_single_attempt_returns_same_function(self):
        func = MagicMock()
        assert with_retry(func, 1) is func


class TestBackgroundRefresher:
    """Test background fetch hand-off."""

    def test_results_applied_on_drain(self, cache, refresher):
        refresher.submit(cache, "NZD_USD", lambda: 0.61)
        # Nothing lands in the cache until the owner drains
        assert "NZD_USD" not in cache
        report = refresher.drain()
        assert len(report.successes) == 1
        assert cache.lookup("NZD_USD").value == 0.61

    def test_failures_recorded(self, cache, refresher):
        refresher.submit(cache, "NZD_USD", MagicMock(side_effect=TransportFailure("down")))
        report = refresher.drain()
        assert len(report.failures) == 1
        assert cache.lookup("NZD_USD").status is CacheStatus.UNAVAILABLE

    def test_unexpected_error_becomes_transport_failure(self, cache, refresher):
        refresher.submit(cache, "NZD_USD", MagicMock(side_effect=RuntimeError("boom")))
        report = refresher.drain()
        assert isinstance(report.failures[0].error, TransportFailure)

    def test_in_flight_dedupe(self, cache, deferred_executor):
        refresher = BackgroundRefresher(executor=deferred_executor)
        assert refresher.submit(cache, "NZD_USD", lambda: 0.6)
        assert not refresher.submit(cache, "NZD_USD", lambda: 0.7)
        assert refresher.is_in_flight("exchange_rate", "NZD_USD")
        deferred_executor.run_all()
        refresher.drain()
        assert refresher.pending == 0
        assert cache.lookup("NZD_USD").value == 0.6

    def test_applied_in_arrival_order(self, cache, deferred_executor):
        refresher = BackgroundRefresher(executor=deferred_executor)
        refresher.submit(cache, "NZD_USD", lambda: 0.6)
        refresher.submit(cache, "NZD_EUR", lambda: 0.55)
        deferred_executor.run_all()
        report = refresher.drain()
        assert [o.key for o in report.applied] == ["NZD_USD", "NZD_EUR"]

    def test_orphaned_result_dropped(self, cache, deferred_executor):
        """A fetch for a key removed mid-flight does not resurrect it."""
        refresher = BackgroundRefresher(executor=deferred_executor)
        cache.set_active_keys(["NZD_USD"])
        refresher.submit(cache, "NZD_USD", lambda: 0.6)
        cache.set_active_keys(["NZD_EUR"])
        deferred_executor.run_all()

        report = refresher.drain()

        assert [o.key for o in report.dropped] == ["NZD_USD"]
        assert "NZD_USD" not in cache

    def test_retry_attempts_in_background(self, cache, refresher):
        fetcher = MagicMock(side_effect=[FetchTimeout("slow"), 0.6])
        refresher.submit(cache, "NZD_USD", lambda: fetcher(), attempts=2)
        refresher.drain()
        assert fetcher.call_count == 2
        assert cache.lookup("NZD_USD").value == 0.6
