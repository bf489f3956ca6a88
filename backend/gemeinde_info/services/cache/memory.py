"""
Info Cache - In-Memory Store.

For single-instance deployments and tests. Concurrent puts on the same
key simply overwrite each other.
"""

from gemeinde_info.core.models import CacheEntry, CacheKey, CachePayload
from gemeinde_info.services.cache.base import InfoCache


class InMemoryInfoCache(InfoCache):

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._entries: dict[CacheKey, CacheEntry] = {}

    async def get(self, key: CacheKey) -> CacheEntry | None:
        entry = self._entries.get(key)
        return entry.model_copy(deep=True) if entry else None

    async def put(self, key: CacheKey, payload: CachePayload) -> CacheEntry:
        entry = self.new_entry(key, payload.model_copy(deep=True))
        self._entries[key] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)
