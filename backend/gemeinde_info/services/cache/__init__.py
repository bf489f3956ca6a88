"""
Cache of extracted authority info.

- InfoCache: get/put contract, TTL per info category
- InMemoryInfoCache: process-local dict
- SqlInfoCache: authority_info_cache table
"""

from gemeinde_info.services.cache.base import InfoCache, ttl_for
from gemeinde_info.services.cache.memory import InMemoryInfoCache
from gemeinde_info.services.cache.sql import SqlInfoCache

__all__ = [
    "InfoCache",
    "InMemoryInfoCache",
    "SqlInfoCache",
    "ttl_for",
]
