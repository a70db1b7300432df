"""Async Redis connection factory.

Every command issued through the returned client is bounded by the configured
socket timeouts; a hung Redis surfaces as a TimeoutError instead of blocking
the request.
"""

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config import RedisSettings
from shared.logging import get_logger

log = get_logger(__name__)


def create_redis_client(settings: RedisSettings) -> aioredis.Redis:
    """Build a client for *settings.redis_uri*. The connection is opened lazily."""
    client: aioredis.Redis = aioredis.from_url(
        settings.redis_uri,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_timeout_seconds,
        socket_connect_timeout=settings.redis_timeout_seconds,
    )
    log.info("redis_client_created", uri=settings.redis_uri.split("@")[-1])  # mask credentials
    return client


async def ping_redis(client: aioredis.Redis) -> bool:
    """Return True if Redis answers PING, False on any Redis or timeout failure."""
    try:
        return bool(await client.ping())
    except (RedisError, OSError) as e:
        log.warning("redis_ping_failed", error=str(e), error_type=type(e).__name__)
        return False
