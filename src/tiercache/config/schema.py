"""Pydantic model for cache configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from tiercache.config.defaults import (
    DEFAULT_CACHE_DIR,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MEMORY_MAX_ENTRIES,
    DEFAULT_MEMORY_MAX_MB,
    DEFAULT_TTL_SECONDS,
    DEFAULT_USE_MEMORY,
)
from tiercache.config.hierarchy import load_config_hierarchy

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class CacheSettings(BaseModel):
    """Validated settings for building a ``TieredCache``.

    ``default_ttl`` of 0 means entries never expire; negative values are
    accepted and produce entries that are expired as soon as they are written.
    """

    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    default_ttl: float = DEFAULT_TTL_SECONDS
    use_memory: bool = DEFAULT_USE_MEMORY
    memory_max_entries: int = Field(default=DEFAULT_MEMORY_MAX_ENTRIES, ge=1)
    memory_max_mb: float = Field(default=DEFAULT_MEMORY_MAX_MB, gt=0)
    log_level: str = DEFAULT_LOG_LEVEL

    model_config = {"extra": "ignore"}

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _expand_cache_dir(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Path(value).expanduser()
        if isinstance(value, Path):
            return value.expanduser()
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level


def load_settings(**runtime_overrides: Any) -> CacheSettings:
    """Resolve the config hierarchy and validate it."""
    return CacheSettings(**load_config_hierarchy(**runtime_overrides))
