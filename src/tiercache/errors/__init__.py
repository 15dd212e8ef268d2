"""Error handling — exception hierarchy for both cache tiers."""

from tiercache.errors.exceptions import (
    CorruptEntryError,
    DecodeError,
    DiskWriteError,
    EncodeError,
    EntryNotFoundError,
    InvalidKeyError,
    QueueClosedError,
    TierCacheError,
)

__all__ = [
    "TierCacheError",
    "EntryNotFoundError",
    "CorruptEntryError",
    "DiskWriteError",
    "DecodeError",
    "EncodeError",
    "InvalidKeyError",
    "QueueClosedError",
]
