"""Redis implementation of KeyedStore.

Every operation runs under an explicit deadline. Timeouts and connection
failures are logged and raised as StoreUnavailableError, so a Redis outage is
never mistaken for an absent key.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from errors import StoreUnavailableError
from shared.logging import get_logger

log = get_logger(__name__)

_STORE_NAME = "redis"


class RedisKeyedStore:
    def __init__(self, redis_client: aioredis.Redis, timeout_seconds: float = 2.0) -> None:
        self._redis = redis_client
        self._timeout = timeout_seconds

    async def _run(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            log.error(
                "keyed_store_unavailable",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailableError(_STORE_NAME, operation) from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._run("set", self._redis.set(key, value, ex=ttl_seconds))

    async def get(self, key: str) -> Optional[str]:
        return await self._run("get", self._redis.get(key))

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        await self._run("delete", self._redis.delete(*keys))

    async def increment(self, key: str) -> int:
        return int(await self._run("increment", self._redis.incr(key)))

    async def ttl_remaining(self, key: str) -> Optional[int]:
        # Redis answers -2 for a missing key and -1 for a key without expiry
        ttl = await self._run("ttl", self._redis.ttl(key))
        if ttl is None or ttl < 0:
            return None
        return int(ttl)

    async def enqueue(self, queue_name: str, payload: str) -> None:
        await self._run("enqueue", self._redis.lpush(queue_name, payload))
