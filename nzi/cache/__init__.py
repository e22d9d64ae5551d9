"""Resilient cache for remote data."""

from nzi.cache.entry import CacheEntry, CacheLookup, CacheStatus
from nzi.cache.refresher import BackgroundRefresher, DrainReport, FetchOutcome
from nzi.cache.store import DataCache

__all__ = [
    "BackgroundRefresher",
    "CacheEntry",
    "CacheLookup",
    "CacheStatus",
    "DataCache",
    "DrainReport",
    "FetchOutcome",
]
