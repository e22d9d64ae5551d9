"""
Background fetches that report back through a queue.

Workers never touch a cache. Each finished fetch becomes a FetchOutcome on
a FIFO queue, and the interactive thread applies outcomes in arrival order
when it calls drain() once per tick. Outcomes for keys a cache no longer
tracks are dropped on arrival; there is no hard cancellation.
"""

import logging
import queue
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Hashable, List, Optional, Set, Tuple

from nzi.cache.store import DataCache, utc_now
from nzi.errors import NetworkError, TransportFailure
from nzi.utils.retry import with_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one background fetch."""

    kind: str
    key: Hashable
    started_at: datetime
    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DrainReport:
    """What happened to the outcomes consumed by one drain()."""

    applied: Tuple[FetchOutcome, ...] = ()
    dropped: Tuple[FetchOutcome, ...] = ()

    @property
    def failures(self) -> List[FetchOutcome]:
        return [o for o in self.applied if not o.ok]

    @property
    def successes(self) -> List[FetchOutcome]:
        return [o for o in self.applied if o.ok]


class BackgroundRefresher:
    """Runs fetches on a worker pool and hands results to the owning thread."""

    def __init__(
        self,
        max_workers: int = 4,
        executor: Optional[Executor] = None,
        retry_min_wait: float = 0.5,
        retry_max_wait: float = 4.0,
    ):
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="nzi-fetch"
        )
        self._results: "queue.Queue[FetchOutcome]" = queue.Queue()
        self._caches: Dict[str, DataCache] = {}
        self._in_flight: Set[Tuple[str, Hashable]] = set()
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait

    def register(self, cache: DataCache) -> DataCache:
        self._caches[cache.kind] = cache
        return cache

    def is_in_flight(self, kind: str, key: Hashable) -> bool:
        return (kind, key) in self._in_flight

    @property
    def pending(self) -> int:
        return len(self._in_flight)

    def submit(
        self,
        cache: DataCache,
        key: Hashable,
        fetcher: Callable[[], Any],
        attempts: int = 1,
    ) -> bool:
        """
        Start a background fetch for key unless one is already running.

        Returns:
            True if a fetch was started
        """
        if cache.kind not in self._caches:
            self.register(cache)
        token = (cache.kind, key)
        if token in self._in_flight:
            return False
        self._in_flight.add(token)
        started_at = utc_now()
        call = with_retry(fetcher, attempts, self.retry_min_wait, self.retry_max_wait)

        def work() -> None:
            try:
                value = call()
            except NetworkError as e:
                self._results.put(FetchOutcome(cache.kind, key, started_at, error=e))
            except Exception as e:
                logger.exception(f"Unexpected error fetching {cache.kind} for {key}")
                failure = TransportFailure(f"unexpected error: {e}")
                self._results.put(FetchOutcome(cache.kind, key, started_at, error=failure))
            else:
                self._results.put(FetchOutcome(cache.kind, key, started_at, value=value))

        logger.debug(f"Fetching {cache.kind} for {key} (attempts={attempts})")
        self._executor.submit(work)
        return True

    def drain(self) -> DrainReport:
        """Apply every queued outcome to its cache, in arrival order."""
        applied: List[FetchOutcome] = []
        dropped: List[FetchOutcome] = []
        while True:
            try:
                outcome = self._results.get_nowait()
            except queue.Empty:
                break

            self._in_flight.discard((outcome.kind, outcome.key))
            cache = self._caches.get(outcome.kind)
            if cache is None or not cache.is_active(outcome.key):
                logger.debug(f"Dropping {outcome.kind} result for orphaned key {outcome.key}")
                dropped.append(outcome)
                continue

            if outcome.ok:
                cache.record_success(outcome.key, outcome.value)
            else:
                cache.record_failure(outcome.key, outcome.error)
            applied.append(outcome)

        return DrainReport(tuple(applied), tuple(dropped))

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
