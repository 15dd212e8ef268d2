"""Cache statistics model."""

from __future__ import annotations

from pydantic import BaseModel


class CacheStats(BaseModel):
    """Snapshot of one engine's counters and tier sizes."""

    memory_hits: int = 0
    disk_hits: int = 0
    misses: int = 0
    expired: int = 0
    decode_failures: int = 0
    writes: int = 0
    removals: int = 0
    pending_writes: int = 0
    failed_writes: int = 0
    memory_entries: int = 0
    disk_entries: int = 0
    disk_size_mb: float = 0.0

    @property
    def hits(self) -> int:
        return self.memory_hits + self.disk_hits

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0
