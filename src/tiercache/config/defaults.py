"""Package-level default configuration values."""

from __future__ import annotations

from pathlib import Path
from typing import Any

# Default expiration policy
DEFAULT_TTL_SECONDS = 24 * 3600.0  # 1 day
DEFAULT_USE_MEMORY = True

# Default storage settings
DEFAULT_CACHE_DIR = str(Path.home() / ".cache" / "tiercache")
DEFAULT_MEMORY_MAX_ENTRIES = 1000
DEFAULT_MEMORY_MAX_MB = 64.0

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "cache_dir": DEFAULT_CACHE_DIR,
        "default_ttl": DEFAULT_TTL_SECONDS,
        "use_memory": DEFAULT_USE_MEMORY,
        "memory_max_entries": DEFAULT_MEMORY_MAX_ENTRIES,
        "memory_max_mb": DEFAULT_MEMORY_MAX_MB,
        "log_level": DEFAULT_LOG_LEVEL,
    }
