"""L1 in-memory LRU cache."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_DEFAULT_MAX_ENTRIES = 1000
_DEFAULT_MAX_SIZE_MB = 64

BYTES_KIND = "bytes"


@dataclass(frozen=True)
class MemoryEntry:
    """Raw payload plus, optionally, the value a codec decoded it into.

    ``kind`` names the codec that produced ``value``. A typed accessor only
    reuses ``value`` when ``kind`` is its own; otherwise it decodes ``data``.
    """

    data: bytes
    value: Any = None
    kind: str = BYTES_KIND

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class MemoryStore(Protocol):
    """What the engine needs from a memory tier.

    Implementations may drop entries at any time; a miss after eviction
    looks exactly like a miss for a key that was never set.
    """

    def get(self, key: str) -> MemoryEntry | None: ...

    def set(self, key: str, entry: MemoryEntry) -> None: ...

    def remove(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...

    def __contains__(self, key: object) -> bool: ...


class MemoryCache:
    """Thread-safe in-memory LRU cache bounded by entry count and payload size."""

    def __init__(
        self,
        max_entries: int = _DEFAULT_MAX_ENTRIES,
        max_size_mb: float = _DEFAULT_MAX_SIZE_MB,
    ) -> None:
        self._store: OrderedDict[str, MemoryEntry] = OrderedDict()
        self._max_entries = max_entries
        self._max_size_bytes = int(max_size_mb * 1024 * 1024)
        self._current_size_bytes = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> MemoryEntry | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            # Move to end (most recently used)
            self._store.move_to_end(key)
            return entry

    def set(self, key: str, entry: MemoryEntry) -> None:
        with self._lock:
            self._remove(key)
            if entry.size_bytes > self._max_size_bytes:
                logger.debug("Entry %s larger than memory limit; not cached", key)
                return
            # Evict until there's room
            while self._store and (
                len(self._store) >= self._max_entries
                or self._current_size_bytes + entry.size_bytes > self._max_size_bytes
            ):
                self._evict_oldest()
            self._store[key] = entry
            self._current_size_bytes += entry.size_bytes

    def remove(self, key: str) -> None:
        with self._lock:
            self._remove(key)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._current_size_bytes = 0

    @property
    def size_mb(self) -> float:
        return self._current_size_bytes / (1024 * 1024)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store

    def _remove(self, key: str) -> None:
        entry = self._store.pop(key, None)
        if entry is not None:
            self._current_size_bytes -= entry.size_bytes

    def _evict_oldest(self) -> None:
        _, entry = self._store.popitem(last=False)
        self._current_size_bytes -= entry.size_bytes
