"""Custom exception hierarchy for tiercache."""

from __future__ import annotations

from typing import Any


class TierCacheError(Exception):
    """Base exception for all tiercache errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class EntryNotFoundError(TierCacheError):
    """No disk entry exists for the key.

    This is a read-path signal, not a failure. The engine turns it into a miss.
    """

    def __init__(self, key: str) -> None:
        super().__init__(f"No cache entry for key: {key}")
        self.key = key


class CorruptEntryError(TierCacheError):
    """Disk entry is too short to hold the expiration header."""

    def __init__(self, key: str, size: int = 0) -> None:
        super().__init__(f"Corrupt cache entry for key {key} ({size} bytes)")
        self.key = key
        self.size = size


class DiskWriteError(TierCacheError):
    """A queued disk mutation failed (permissions, disk full, ...).

    Raised inside write-queue tasks only. The worker logs it and moves on.
    """

    def __init__(
        self,
        message: str = "",
        operation: str = "write",
        key: str | None = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.key = key
        self.original = original


class DecodeError(TierCacheError):
    """Stored bytes could not be decoded by a typed accessor's codec."""

    def __init__(
        self,
        message: str = "",
        codec: str = "bytes",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.codec = codec
        self.original = original


class EncodeError(TierCacheError, TypeError):
    """A value could not be encoded by a typed setter's codec."""

    def __init__(
        self,
        message: str = "",
        codec: str = "bytes",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.codec = codec
        self.original = original


class InvalidKeyError(TierCacheError, ValueError):
    """Key cannot be used as a file name in the cache directory."""

    def __init__(self, key: str, reason: str = "") -> None:
        message = f"Invalid cache key {key!r}"
        super().__init__(f"{message}: {reason}" if reason else message)
        self.key = key
        self.reason = reason


class QueueClosedError(TierCacheError):
    """Task submitted to a write queue that has been closed."""
