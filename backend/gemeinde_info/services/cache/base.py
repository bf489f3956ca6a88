"""
Info Cache - Store Interface.

One payload per (bfs_nummer, category, scope). Writes are upserts that replace
the whole payload; staleness is evaluated by the reader, expired entries
are never deleted.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.core.models import CacheEntry, CacheKey, CachePayload, InfoCategory, utcnow

Clock = Callable[[], datetime]


def ttl_for(category: InfoCategory, settings: Settings | None = None) -> int:
    """TTL in seconds configured for an info category."""
    s = settings or default_settings
    if category == InfoCategory.REGISTRATION_PROCESS:
        return s.cache_ttl_registration_process
    if category == InfoCategory.SCHOOL_REGISTRATION:
        return s.cache_ttl_school_registration
    return s.cache_ttl_operational


class InfoCache(ABC):
    """Keyed store for extracted authority info."""

    def __init__(self, settings: Settings | None = None, clock: Clock = utcnow):
        self.settings = settings or default_settings
        self.clock = clock

    @abstractmethod
    async def get(self, key: CacheKey) -> CacheEntry | None:
        """Entry for key, stale or not. None if never written."""

    @abstractmethod
    async def put(self, key: CacheKey, payload: CachePayload) -> CacheEntry:
        """
        Upsert payload under key with cached_at = now.

        Raises:
            CacheWriteError: the store could not persist the entry
        """

    def new_entry(self, key: CacheKey, payload: CachePayload) -> CacheEntry:
        return CacheEntry(
            key=key,
            payload=payload,
            cached_at=self.clock(),
            ttl_seconds=ttl_for(key.category, self.settings),
        )

    def is_fresh(self, entry: CacheEntry) -> bool:
        return not entry.is_stale(self.clock())
