"""Recovery snapshot stores for the setup wizard.

The wizard writes its whole state after every change and deletes it when
the session ends (complete / skip / reset). The store is handed to the
wizard at construction, so tests use `InMemorySnapshotStore` and the API
uses `RedisSnapshotStore`.
"""

import json
import logging
from typing import Optional, Protocol

import redis.asyncio as redis

from arqos.config import settings

logger = logging.getLogger(__name__)

# Global Redis connection pool
_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get or create the shared Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )
    return _redis_client


async def close_redis():
    """Close Redis connection (call on app shutdown)."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def snapshot_key(session_id: str | None = None) -> str:
    """`arqos-setup-wizard` or `arqos-setup-wizard:<session_id>`."""
    base = settings.wizard_snapshot_key
    return f"{base}:{session_id}" if session_id else base


class SnapshotStore(Protocol):
    async def load(self, key: str) -> dict | None: ...

    async def save(self, key: str, value: dict) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemorySnapshotStore:
    """Process-local store; one instance per wizard session or test."""

    def __init__(self):
        self._data: dict[str, str] = {}

    async def load(self, key: str) -> dict | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def save(self, key: str, value: dict) -> None:
        self._data[key] = json.dumps(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class RedisSnapshotStore:
    """Snapshot per key as a JSON string with a sliding TTL."""

    def __init__(self, client: redis.Redis, ttl: int | None = None):
        self.client = client
        self.ttl = ttl if ttl is not None else settings.wizard_snapshot_ttl_seconds

    async def load(self, key: str) -> dict | None:
        raw = await self.client.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable wizard snapshot %s", key)
            return None

    async def save(self, key: str, value: dict) -> None:
        await self.client.setex(key, self.ttl, json.dumps(value))

    async def delete(self, key: str) -> None:
        await self.client.delete(key)
