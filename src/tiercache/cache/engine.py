"""Cache engine — coordinates the memory tier, the disk tier and the write queue."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tiercache.cache import codecs
from tiercache.cache.codecs import Codec
from tiercache.cache.disk import NEVER_EXPIRES, DiskStore, validate_key
from tiercache.cache.keys import key_for
from tiercache.cache.memory import MemoryCache, MemoryEntry, MemoryStore
from tiercache.cache.stats import CacheStats
from tiercache.cache.write_queue import WriteQueue
from tiercache.config.defaults import (
    DEFAULT_MEMORY_MAX_ENTRIES,
    DEFAULT_MEMORY_MAX_MB,
    DEFAULT_TTL_SECONDS,
    DEFAULT_USE_MEMORY,
)
from tiercache.errors.exceptions import CorruptEntryError, DecodeError, EntryNotFoundError

if TYPE_CHECKING:
    from PIL import Image

    from tiercache.config.schema import CacheSettings

logger = logging.getLogger(__name__)


class TieredCache:
    """Two-tier cache: L1 in-memory, L2 on-disk files with TTL headers.

    Reads run on the calling thread: memory first (unless bypassed), then
    disk, where expired entries are purged on discovery. Writes land in
    memory before returning; the disk write is queued on a single worker
    thread so disk mutations always happen in submission order.

    Memory entries carry no TTL. An entry can outlive its disk expiration in
    memory until it is removed or evicted.
    """

    key_for = staticmethod(key_for)

    def __init__(
        self,
        cache_dir: Path | str | None = None,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        default_use_memory: bool = DEFAULT_USE_MEMORY,
        memory_store: MemoryStore | None = None,
        memory_max_entries: int = DEFAULT_MEMORY_MAX_ENTRIES,
        memory_max_mb: float = DEFAULT_MEMORY_MAX_MB,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._disk = DiskStore(cache_dir)
        self._memory: MemoryStore = (
            memory_store
            if memory_store is not None
            else MemoryCache(max_entries=memory_max_entries, max_size_mb=memory_max_mb)
        )
        self._queue = WriteQueue()
        self._clock = clock
        self._default_ttl = float(default_ttl)
        self._default_use_memory = default_use_memory
        self._stats = CacheStats()
        self._stats_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: CacheSettings, **kwargs: Any) -> TieredCache:
        return cls(
            cache_dir=settings.cache_dir,
            default_ttl=settings.default_ttl,
            default_use_memory=settings.use_memory,
            memory_max_entries=settings.memory_max_entries,
            memory_max_mb=settings.memory_max_mb,
            **kwargs,
        )

    # ── Defaults ──

    @property
    def default_ttl(self) -> float:
        """TTL in seconds applied when a setter gets ``ttl=None``. 0 never expires."""
        return self._default_ttl

    @default_ttl.setter
    def default_ttl(self, value: float) -> None:
        self._default_ttl = float(value)

    @property
    def default_use_memory(self) -> bool:
        return self._default_use_memory

    @default_use_memory.setter
    def default_use_memory(self, value: bool) -> None:
        self._default_use_memory = bool(value)

    @property
    def cache_dir(self) -> Path:
        return self._disk.directory

    # ── Raw bytes ──

    def get_data(self, key: str, use_memory: bool | None = None) -> bytes | None:
        return self._lookup(key, codecs.BYTES, use_memory)

    def set_data(
        self,
        key: str,
        data: bytes,
        ttl: float | None = None,
        use_memory: bool | None = None,
        memory_object: Any = None,
    ) -> None:
        """Store raw bytes.

        If ``memory_object`` is given it is kept in the memory tier next to the
        bytes, and a following ``get_object`` hit returns it without unpickling.
        """
        payload = codecs.BYTES.encode(data)
        if memory_object is not None:
            self._store(key, payload, memory_object, codecs.OBJECT.name, ttl, use_memory)
        else:
            self._store(key, payload, payload, codecs.BYTES.name, ttl, use_memory)

    # ── Typed wrappers ──

    def get_string(self, key: str, use_memory: bool | None = None) -> str | None:
        return self._lookup(key, codecs.TEXT, use_memory)

    def set_string(
        self,
        key: str,
        value: str,
        ttl: float | None = None,
        use_memory: bool | None = None,
    ) -> None:
        self._store_typed(key, value, codecs.TEXT, ttl, use_memory)

    def get_plist(self, key: str, use_memory: bool | None = None) -> Any:
        """Return a property-list value (dict, list, str, bytes, number, ...)."""
        return self._lookup(key, codecs.PLIST, use_memory)

    def set_plist(
        self,
        key: str,
        value: Any,
        ttl: float | None = None,
        use_memory: bool | None = None,
    ) -> None:
        self._store_typed(key, value, codecs.PLIST, ttl, use_memory)

    def get_image(self, key: str, use_memory: bool | None = None) -> Image.Image | None:
        return self._lookup(key, codecs.IMAGE, use_memory)

    def set_image(
        self,
        key: str,
        image: Image.Image,
        ttl: float | None = None,
        use_memory: bool | None = None,
    ) -> None:
        self._store_typed(key, image, codecs.IMAGE, ttl, use_memory)

    def get_object(self, key: str, use_memory: bool | None = None) -> Any:
        """Return a pickled object. A stored ``None`` is indistinguishable from a miss."""
        return self._lookup(key, codecs.OBJECT, use_memory)

    def set_object(
        self,
        key: str,
        value: Any,
        ttl: float | None = None,
        use_memory: bool | None = None,
    ) -> None:
        self._store_typed(key, value, codecs.OBJECT, ttl, use_memory)

    def copy_file(self, path: Path | str, key: str, ttl: float | None = None) -> None:
        """Store the contents of an existing file under ``key``.

        The copy runs on the write queue and does not touch the memory tier,
        apart from dropping a stale entry for the key.
        """
        validate_key(key)
        source = Path(path)
        if not source.is_file():
            raise FileNotFoundError(f"File not found: {source}")
        now = self._clock()
        expiration = self._expiration_for(ttl, now)
        self._memory.remove(key)
        if expiration <= now:
            self._enqueue_remove(key)
            return
        self._count("writes")
        self._queue.enqueue(
            self._disk.write_from_file,
            key,
            expiration,
            source,
            description=f"copy {source} -> {key}",
        )

    # ── Presence and removal ──

    def has(self, key: str, memory_only: bool = False) -> bool:
        """True if the key is in memory, or (unless ``memory_only``) on disk and unexpired."""
        validate_key(key)
        if key in self._memory:
            return True
        if memory_only:
            return False
        try:
            expiration = self._disk.read_expiration(key)
        except (EntryNotFoundError, CorruptEntryError):
            return False
        except OSError as e:
            logger.warning("Cannot read cache entry %s: %s", key, e)
            return False
        return self._clock() < expiration

    def remove(self, key: str) -> None:
        validate_key(key)
        self._memory.remove(key)
        self._count("removals")
        self._enqueue_remove(key)

    def remove_memory(self, key: str) -> None:
        self._memory.remove(key)

    def clear(self) -> None:
        """Empty both tiers and reset counters. The disk part is queued."""
        self._memory.clear()
        self._queue.enqueue(self._disk.clear, description="clear")
        with self._stats_lock:
            self._stats = CacheStats()

    def clear_memory(self) -> None:
        self._memory.clear()

    # ── Lifecycle ──

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for queued disk work. Returns False on timeout."""
        return self._queue.join(timeout)

    def close(self, timeout: float | None = None) -> None:
        """Finish queued disk work and stop the writer thread."""
        self._queue.close(timeout)

    def __enter__(self) -> TieredCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def stats(self) -> CacheStats:
        """Return a snapshot of counters plus current tier sizes."""
        with self._stats_lock:
            snapshot = self._stats.model_copy()
        snapshot.pending_writes = self._queue.pending
        snapshot.failed_writes = self._queue.failed_count
        snapshot.memory_entries = len(self._memory)
        snapshot.disk_entries = self._disk.entry_count
        snapshot.disk_size_mb = self._disk.size_mb
        return snapshot

    # ── Internals ──

    def _lookup(self, key: str, codec: Codec, use_memory: bool | None) -> Any:
        validate_key(key)
        use_memory = self._resolve_use_memory(use_memory)

        if use_memory:
            entry = self._memory.get(key)
            if entry is not None:
                logger.debug("Memory hit for %s", key)
                return self._value_from_entry(key, entry, codec)

        now = self._clock()
        try:
            expiration, data = self._disk.read(key)
        except EntryNotFoundError:
            self._count("misses")
            return None
        except CorruptEntryError as e:
            logger.warning("%s; purging", e.message)
            self._count("misses")
            self._enqueue_purge(key, now)
            return None
        except OSError as e:
            logger.warning("Cannot read cache entry %s: %s", key, e)
            self._count("misses")
            return None

        if now >= expiration:
            logger.debug("Entry %s expired; purging", key)
            self._count("expired")
            self._count("misses")
            self._enqueue_purge(key, now)
            return None

        try:
            value = codec.decode(data)
        except DecodeError as e:
            self._decode_failed(key, e)
            return None

        self._count("disk_hits")
        logger.debug("Disk hit for %s", key)
        if use_memory:
            self._memory.set(key, MemoryEntry(data, value, codec.name))
        return value

    def _value_from_entry(self, key: str, entry: MemoryEntry, codec: Codec) -> Any:
        if codec is codecs.BYTES:
            value = entry.data
        elif entry.kind == codec.name:
            value = entry.value
        else:
            try:
                value = codec.decode(entry.data)
            except DecodeError as e:
                self._decode_failed(key, e)
                return None
        self._count("memory_hits")
        return value

    def _decode_failed(self, key: str, error: DecodeError) -> None:
        logger.warning("Cache entry %s: %s", key, error.message)
        self._count("decode_failures")
        self._count("misses")

    def _store_typed(
        self,
        key: str,
        value: Any,
        codec: Codec,
        ttl: float | None,
        use_memory: bool | None,
    ) -> None:
        self._store(key, codec.encode(value), value, codec.name, ttl, use_memory)

    def _store(
        self,
        key: str,
        data: bytes,
        value: Any,
        kind: str,
        ttl: float | None,
        use_memory: bool | None,
    ) -> None:
        validate_key(key)
        use_memory = self._resolve_use_memory(use_memory)
        now = self._clock()
        expiration = self._expiration_for(ttl, now)

        if expiration <= now:
            # Already expired: nothing worth keeping in either tier
            logger.debug("Entry %s expired on write; removing", key)
            self._memory.remove(key)
            self._enqueue_remove(key)
            return

        if use_memory:
            self._memory.set(key, MemoryEntry(data, value, kind))
        else:
            self._memory.remove(key)
        self._count("writes")
        self._queue.enqueue(self._disk.write, key, expiration, data, description=f"write {key}")

    def _enqueue_remove(self, key: str) -> None:
        self._queue.enqueue(self._disk.remove, key, description=f"remove {key}")

    def _enqueue_purge(self, key: str, now: float) -> None:
        # Header is re-checked on the worker so a newer queued write survives
        self._queue.enqueue(
            self._disk.remove_if_expired, key, now, description=f"purge {key}"
        )

    def _expiration_for(self, ttl: float | None, now: float) -> float:
        ttl = self._default_ttl if ttl is None else ttl
        if ttl == 0:
            return NEVER_EXPIRES
        return now + ttl

    def _resolve_use_memory(self, use_memory: bool | None) -> bool:
        return self._default_use_memory if use_memory is None else use_memory

    def _count(self, field: str, n: int = 1) -> None:
        with self._stats_lock:
            setattr(self._stats, field, getattr(self._stats, field) + n)
