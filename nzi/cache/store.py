"""
Generic fetch/cache/stale engine.

One DataCache per data kind (weather per city code, exchange rate per
currency pair). Values only ever come from a real fetch: on failure the
last-known-good value is kept and marked stale, and a key that never
fetched successfully reports UNAVAILABLE instead of a made-up value.

DataCache is not thread-safe. It is written only by the interactive
thread; background fetches report back through BackgroundRefresher.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Generic, Hashable, Iterable, List, Optional, Set, TypeVar

from nzi.cache.entry import CacheEntry, CacheLookup, CacheStatus
from nzi.errors import NetworkError
from nzi.utils.retry import with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DataCache(Generic[K, T]):
    """TTL cache with explicit fresh/stale/unavailable status per key."""

    def __init__(self, kind: str, ttl: timedelta, clock: Optional[Clock] = None):
        self.kind = kind
        self.ttl = ttl
        self._clock = clock or utc_now
        self._entries: Dict[K, CacheEntry[T]] = {}
        self._errors: Dict[K, str] = {}
        self._active: Optional[Set[K]] = None

    def now(self) -> datetime:
        return self._clock()

    def __contains__(self, key: K) -> bool:
        return key in self._entries

    def keys(self) -> List[K]:
        return list(self._entries.keys())

    def get(self, key: K) -> Optional[CacheEntry[T]]:
        return self._entries.get(key)

    def lookup(self, key: K) -> CacheLookup[K, T]:
        """Current status of key without fetching."""
        entry = self._entries.get(key)
        if entry is None:
            return CacheLookup(key, CacheStatus.UNAVAILABLE, error=self._errors.get(key))
        if not entry.stale and entry.is_expired(self.now()):
            entry.stale = True
        status = CacheStatus.STALE if entry.stale else CacheStatus.FRESH
        return CacheLookup(key, status, entry, entry.last_error)

    def needs_refresh(self, key: K) -> bool:
        return self.lookup(key).status is not CacheStatus.FRESH

    def get_or_refresh(
        self,
        key: K,
        fetcher: Callable[[], T],
        ttl: Optional[timedelta] = None,
        attempts: int = 1,
    ) -> CacheLookup[K, T]:
        """
        Return the entry for key, fetching first if it is stale or absent.

        Args:
            key: Cache key
            fetcher: Zero-argument callable doing the network fetch
            ttl: Freshness window for a new entry (default: cache ttl)
            attempts: Bounded attempts with backoff before giving up

        Returns:
            CacheLookup; FRESH after a successful fetch, STALE with the prior
            value after a failed one, UNAVAILABLE when nothing was ever fetched
        """
        current = self.lookup(key)
        if current.status is CacheStatus.FRESH:
            return current

        try:
            value = with_retry(fetcher, attempts)()
        except NetworkError as e:
            return self.record_failure(key, e)
        self.record_success(key, value, ttl)
        return self.lookup(key)

    def record_success(self, key: K, value: T, ttl: Optional[timedelta] = None) -> CacheEntry[T]:
        entry = CacheEntry(value=value, fetched_at=self.now(), ttl=ttl if ttl is not None else self.ttl)
        self._entries[key] = entry
        self._errors.pop(key, None)
        logger.debug(f"{self.kind} cache updated for {key}")
        return entry

    def record_failure(self, key: K, error: Exception) -> CacheLookup[K, T]:
        """Keep the prior value (if any) and mark it stale."""
        message = str(error) or type(error).__name__
        entry = self._entries.get(key)
        if entry is None:
            self._errors[key] = message
            logger.warning(f"{self.kind} unavailable for {key}: {message}")
            return CacheLookup(key, CacheStatus.UNAVAILABLE, error=message)

        entry.stale = True
        entry.last_error = message
        logger.warning(f"{self.kind} fetch failed for {key}, serving stale value: {message}")
        return CacheLookup(key, CacheStatus.STALE, entry, message)

    def set_active_keys(self, keys: Iterable[K]) -> List[K]:
        """
        Re-key the cache to the given set.

        Entries for keys no longer in use are dropped; results arriving
        later for them are ignored. Returns the dropped keys.
        """
        active = set(keys)
        dropped = [key for key in self._entries if key not in active]
        for key in dropped:
            del self._entries[key]
        for key in [k for k in self._errors if k not in active]:
            del self._errors[key]
        self._active = active
        if dropped:
            logger.info(f"{self.kind} cache dropped {len(dropped)} orphaned key(s): {dropped}")
        return dropped

    def is_active(self, key: K) -> bool:
        return self._active is None or key in self._active

    @property
    def active_keys(self) -> Set[K]:
        return set(self._active) if self._active is not None else set(self._entries)

    def missing_keys(self) -> List[K]:
        """Active keys that are absent or not fresh."""
        return sorted((k for k in self.active_keys if self.needs_refresh(k)), key=str)
