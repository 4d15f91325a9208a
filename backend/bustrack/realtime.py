"""
Stockage temps reel / Real-time projection store.

Positions live et alertes SOS actives, une collection = un hash Redis.
Live positions and active SOS alerts, one collection = one Redis hash.

    live_locations     -> {driver_id}:{vehicle_id} -> JSON
    active_sos_alerts  -> {alert_id}               -> JSON
"""

import json
import logging
from typing import Any, Protocol

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from bustrack.config import settings
from bustrack.services.errors import StorageUnavailable

logger = logging.getLogger(__name__)

LIVE_LOCATIONS = "live_locations"
ACTIVE_SOS_ALERTS = "active_sos_alerts"


class RealtimeStore(Protocol):
    """Contrat cle-valeur basse latence / Low-latency key-value contract."""

    async def get(self, collection: str, key: str) -> dict[str, Any] | None: ...

    async def set(self, collection: str, key: str, value: dict[str, Any]) -> None: ...

    async def delete(self, collection: str, key: str) -> None: ...

    async def values(self, collection: str) -> list[dict[str, Any]]: ...

    async def close(self) -> None: ...


class MemoryRealtimeStore:
    """Implementation en memoire (dev/tests) / In-memory implementation (dev/tests)."""

    def __init__(self):
        self._data: dict[str, dict[str, str]] = {}

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        raw = self._data.get(collection, {}).get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, collection: str, key: str, value: dict[str, Any]) -> None:
        # Serialiser comme Redis pour garder le meme comportement / Serialize like Redis for parity
        self._data.setdefault(collection, {})[key] = json.dumps(value)

    async def delete(self, collection: str, key: str) -> None:
        self._data.get(collection, {}).pop(key, None)

    async def values(self, collection: str) -> list[dict[str, Any]]:
        return [json.loads(raw) for raw in self._data.get(collection, {}).values()]

    async def close(self) -> None:
        self._data.clear()


class RedisRealtimeStore:
    """Implementation Redis (hashes) / Redis implementation (hashes)."""

    def __init__(self, url: str):
        # decode_responses=True : valeurs en str pour json / values as str for json
        self._redis = redis.Redis.from_url(url, decode_responses=True)

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        try:
            raw = await self._redis.hget(collection, key)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StorageUnavailable(f"Real-time store unavailable: {exc}") from exc
        return json.loads(raw) if raw is not None else None

    async def set(self, collection: str, key: str, value: dict[str, Any]) -> None:
        try:
            await self._redis.hset(collection, key, json.dumps(value))
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StorageUnavailable(f"Real-time store unavailable: {exc}") from exc

    async def delete(self, collection: str, key: str) -> None:
        try:
            await self._redis.hdel(collection, key)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StorageUnavailable(f"Real-time store unavailable: {exc}") from exc

    async def values(self, collection: str) -> list[dict[str, Any]]:
        try:
            raw_values = await self._redis.hvals(collection)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StorageUnavailable(f"Real-time store unavailable: {exc}") from exc
        return [json.loads(raw) for raw in raw_values]

    async def close(self) -> None:
        await self._redis.aclose()


def create_realtime_store() -> RealtimeStore:
    """Choisir l'implementation selon la config / Pick implementation from settings."""
    if settings.REALTIME_BACKEND == "redis":
        logger.info("Real-time store: redis (%s)", settings.REDIS_URL)
        return RedisRealtimeStore(settings.REDIS_URL)
    logger.info("Real-time store: memory")
    return MemoryRealtimeStore()
