"""Tests stockage temps reel / Real-time store tests."""

import pytest

from bustrack.realtime import LIVE_LOCATIONS, MemoryRealtimeStore, RedisRealtimeStore
from bustrack.services.errors import StorageUnavailable


async def test_memory_store_operations():
    store = MemoryRealtimeStore()
    assert await store.get(LIVE_LOCATIONS, "drv-1:BUS-101") is None
    assert await store.values(LIVE_LOCATIONS) == []

    await store.set(LIVE_LOCATIONS, "drv-1:BUS-101", {"latitude": 1.0})
    await store.set(LIVE_LOCATIONS, "drv-1:BUS-101", {"latitude": 2.0})
    await store.set(LIVE_LOCATIONS, "drv-2:BUS-202", {"latitude": 3.0})
    assert await store.get(LIVE_LOCATIONS, "drv-1:BUS-101") == {"latitude": 2.0}
    assert len(await store.values(LIVE_LOCATIONS)) == 2

    await store.delete(LIVE_LOCATIONS, "drv-1:BUS-101")
    await store.delete(LIVE_LOCATIONS, "missing")
    assert await store.get(LIVE_LOCATIONS, "drv-1:BUS-101") is None


async def test_memory_store_returns_copies():
    store = MemoryRealtimeStore()
    value = {"latitude": 1.0}
    await store.set(LIVE_LOCATIONS, "k", value)
    value["latitude"] = 9.0
    assert await store.get(LIVE_LOCATIONS, "k") == {"latitude": 1.0}


async def test_unreachable_redis_maps_to_storage_unavailable():
    store = RedisRealtimeStore("redis://127.0.0.1:1/0")
    try:
        with pytest.raises(StorageUnavailable):
            await store.get(LIVE_LOCATIONS, "drv-1:BUS-101")
    finally:
        await store.close()
