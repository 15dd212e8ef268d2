"""Tests for in-memory LRU cache."""

import threading

from tiercache.cache.memory import MemoryCache, MemoryEntry


def _entry(data: bytes = b"test", **kwargs) -> MemoryEntry:
    return MemoryEntry(data=data, **kwargs)


class TestMemoryEntry:
    def test_defaults_to_raw_bytes(self):
        entry = MemoryEntry(b"abc")
        assert entry.kind == "bytes"
        assert entry.value is None
        assert entry.size_bytes == 3

    def test_tagged_value(self):
        obj = {"a": 1}
        entry = MemoryEntry(b"...", value=obj, kind="object")
        assert entry.value is obj
        assert entry.kind == "object"


class TestMemoryCache:
    def test_get_set(self):
        cache = MemoryCache()
        cache.set("k1", _entry(b"# Hello"))
        result = cache.get("k1")
        assert result is not None
        assert result.data == b"# Hello"

    def test_get_miss(self):
        cache = MemoryCache()
        assert cache.get("nonexistent") is None

    def test_remove(self):
        cache = MemoryCache()
        cache.set("k1", _entry())
        cache.remove("k1")
        assert cache.get("k1") is None
        assert cache.size_mb == 0

    def test_remove_missing_is_noop(self):
        cache = MemoryCache()
        cache.remove("nope")
        assert len(cache) == 0

    def test_size_eviction(self):
        # 0.0002 MB ≈ 209 bytes — fits one 200-byte entry, not two
        cache = MemoryCache(max_size_mb=0.0002)
        cache.set("k1", _entry(b"a" * 200))
        cache.set("k2", _entry(b"b" * 200))
        assert cache.get("k1") is None
        assert cache.get("k2") is not None

    def test_oversized_entry_not_admitted(self):
        cache = MemoryCache(max_size_mb=0.0002)
        cache.set("k1", _entry(b"a" * 100))
        cache.set("k2", _entry(b"b" * 500))
        assert cache.get("k2") is None
        # Existing entries are not evicted to make room for it
        assert cache.get("k1") is not None
        assert cache.size_mb <= 0.0002

    def test_oversized_entry_drops_previous_value(self):
        cache = MemoryCache(max_size_mb=0.0002)
        cache.set("k1", _entry(b"a" * 100))
        cache.set("k1", _entry(b"b" * 500))
        assert cache.get("k1") is None
        assert len(cache) == 0

    def test_entry_count_eviction(self):
        cache = MemoryCache(max_entries=2)
        cache.set("k1", _entry())
        cache.set("k2", _entry())
        cache.set("k3", _entry())
        assert len(cache) == 2
        assert "k1" not in cache
        assert "k3" in cache

    def test_lru_order_preserved(self):
        cache = MemoryCache(max_entries=2)
        cache.set("k1", _entry())
        cache.set("k2", _entry())
        # Access k1 to make it most recently used
        cache.get("k1")
        cache.set("k3", _entry())
        assert cache.get("k1") is not None
        assert cache.get("k2") is None

    def test_clear(self):
        cache = MemoryCache()
        cache.set("k1", _entry())
        cache.set("k2", _entry())
        cache.clear()
        assert len(cache) == 0
        assert cache.get("k1") is None
        assert cache.size_mb == 0

    def test_contains(self):
        cache = MemoryCache()
        cache.set("k1", _entry())
        assert "k1" in cache
        assert "k2" not in cache

    def test_size_mb(self):
        cache = MemoryCache()
        cache.set("k1", _entry(b"x" * 1000))
        assert cache.size_mb > 0

    def test_overwrite_existing_key(self):
        cache = MemoryCache()
        cache.set("k1", _entry(b"first"))
        cache.set("k1", _entry(b"second"))
        assert cache.get("k1").data == b"second"
        assert len(cache) == 1
        assert cache.size_mb * 1024 * 1024 == len(b"second")

    def test_concurrent_writers(self):
        cache = MemoryCache(max_entries=50)

        def writer(n: int) -> None:
            for i in range(200):
                cache.set(f"t{n}-{i}", _entry(b"x" * 10))
                cache.get(f"t{n}-{i // 2}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 50
        assert cache.size_mb * 1024 * 1024 == 50 * 10
