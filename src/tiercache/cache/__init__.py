"""Cache subsystem — two-tier (memory + disk) with TTL and queued disk writes."""

from tiercache.cache.disk import NEVER_EXPIRES, DiskStore
from tiercache.cache.engine import TieredCache
from tiercache.cache.keys import key_for, key_for_string, key_for_url
from tiercache.cache.memory import MemoryCache, MemoryEntry, MemoryStore
from tiercache.cache.shared import current_cache, reset_current_cache, set_current_cache
from tiercache.cache.stats import CacheStats
from tiercache.cache.write_queue import WriteQueue

__all__ = [
    "TieredCache",
    "CacheStats",
    "DiskStore",
    "MemoryCache",
    "MemoryEntry",
    "MemoryStore",
    "WriteQueue",
    "NEVER_EXPIRES",
    "current_cache",
    "set_current_cache",
    "reset_current_cache",
    "key_for",
    "key_for_string",
    "key_for_url",
]
