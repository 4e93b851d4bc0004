from types import SimpleNamespace

import pytest

from nephrowatch.utils import cache
from nephrowatch.utils.cache import CacheKeys, clear_cache, get_cached, set_cached


@pytest.mark.anyio
async def test_cache_round_trip_and_prefix_clear():
    await set_cached(CacheKeys.patients("kou", 0, 10), ["a"], ttl_seconds=60)
    await set_cached(CacheKeys.stats(), {"total_patients": 1}, ttl_seconds=60)

    assert await get_cached("patients:kou:0:10") == ["a"]

    await clear_cache(CacheKeys.patients_prefix())

    assert await get_cached("patients:kou:0:10") is None
    assert await get_cached(CacheKeys.stats()) == {"total_patients": 1}


@pytest.mark.anyio
async def test_expired_entries_are_dropped(monkeypatch):
    await set_cached(CacheKeys.stats(), 1, ttl_seconds=10)
    later = cache.time.monotonic() + 11
    monkeypatch.setattr(cache, "time", SimpleNamespace(monotonic=lambda: later))

    assert await get_cached(CacheKeys.stats()) is None
    assert CacheKeys.stats() not in cache._cache
