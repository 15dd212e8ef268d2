"""tiercache — two-tier memory + disk key-value cache with TTL expiration."""

from tiercache.cache import (
    CacheStats,
    TieredCache,
    current_cache,
    key_for,
    reset_current_cache,
    set_current_cache,
)
from tiercache.errors import (
    DecodeError,
    EncodeError,
    InvalidKeyError,
    TierCacheError,
)

__version__ = "0.1.0"

__all__ = [
    "TieredCache",
    "CacheStats",
    "current_cache",
    "set_current_cache",
    "reset_current_cache",
    "key_for",
    "TierCacheError",
    "DecodeError",
    "EncodeError",
    "InvalidKeyError",
    "__version__",
]
