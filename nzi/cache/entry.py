"""Cache entry and lookup value types."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Generic, Hashable, Optional, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


class CacheStatus(str, Enum):
    """Freshness of a cached value, carried alongside it."""

    FRESH = "fresh"
    STALE = "stale"
    UNAVAILABLE = "unavailable"


@dataclass
class CacheEntry(Generic[T]):
    """Last-known-good value for one key."""

    value: T
    fetched_at: datetime
    ttl: timedelta
    stale: bool = False
    last_error: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return now - self.fetched_at > self.ttl

    def age(self, now: datetime) -> timedelta:
        return now - self.fetched_at


@dataclass(frozen=True)
class CacheLookup(Generic[K, T]):
    """What a caller sees for a key: status plus the entry when there is one."""

    key: K
    status: CacheStatus
    entry: Optional[CacheEntry[T]] = None
    error: Optional[str] = None

    @property
    def value(self) -> Optional[T]:
        return self.entry.value if self.entry is not None else None

    @property
    def stale(self) -> bool:
        return self.status is not CacheStatus.FRESH

    @property
    def available(self) -> bool:
        return self.entry is not None
