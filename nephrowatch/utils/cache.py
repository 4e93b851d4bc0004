"""In-memory cache with TTL support."""

from __future__ import annotations

import asyncio
import time
from typing import Any

_cache: dict[str, tuple[float, Any]] = {}
_cache_lock = asyncio.Lock()


class CacheKeys:
    """Centralized cache key builders for consistency across endpoints."""

    @staticmethod
    def patients(search: str | None = None, skip: int = 0, limit: int = 100) -> str:
        """Cache key for the patient list."""
        return f"patients:{search or ''}:{skip}:{limit}"

    @staticmethod
    def patients_prefix() -> str:
        return "patients:"

    @staticmethod
    def stats() -> str:
        """Cache key for the dashboard counters."""
        return "stats:dashboard"

    @staticmethod
    def stats_prefix() -> str:
        return "stats:"


async def get_cached(key: str) -> Any | None:
    now = time.monotonic()
    async with _cache_lock:
        entry = _cache.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if now >= expires_at:
            _cache.pop(key, None)
            return None
        return value


async def set_cached(key: str, value: Any, ttl_seconds: int) -> None:
    expires_at = time.monotonic() + ttl_seconds
    async with _cache_lock:
        _cache[key] = (expires_at, value)


async def clear_cache(prefix: str | None = None) -> None:
    async with _cache_lock:
        if prefix is None:
            _cache.clear()
            return
        for key in list(_cache.keys()):
            if key.startswith(prefix):
                _cache.pop(key, None)
