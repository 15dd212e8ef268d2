"""Process-wide default cache instance."""

from __future__ import annotations

import atexit
import logging
import threading

from tiercache.cache.engine import TieredCache
from tiercache.config.schema import load_settings

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_current: TieredCache | None = None
_atexit_registered = False


def current_cache() -> TieredCache:
    """Return the shared cache, building it from the config hierarchy on first use."""
    global _current
    with _lock:
        if _current is None:
            settings = load_settings()
            logger.debug("Creating shared cache at %s", settings.cache_dir)
            _current = TieredCache.from_settings(settings)
            _register_atexit()
        return _current


def set_current_cache(cache: TieredCache) -> TieredCache | None:
    """Install ``cache`` as the shared instance. Returns the one it replaced, if any."""
    global _current
    with _lock:
        previous, _current = _current, cache
        _register_atexit()
        return previous


def reset_current_cache() -> None:
    """Close and forget the shared instance; the next access builds a new one."""
    global _current
    with _lock:
        cache, _current = _current, None
    if cache is not None:
        cache.close()


def _register_atexit() -> None:
    global _atexit_registered
    if not _atexit_registered:
        atexit.register(reset_current_cache)
        _atexit_registered = True
