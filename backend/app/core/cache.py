"""
Redis cache layer — async Redis client behind a narrow get/set capability.

Provides:
    • RedisCache: get / set with a per-call deadline
    • Startup connectivity check (PING)
    • CacheMiss distinct from backend failure

Every call is bounded by settings.CACHE_TIMEOUT on top of whatever
cancellation the caller applies.

Usage:
    cache = RedisCache.from_settings(settings)
    await cache.connect()
    await cache.set("client:42", "...", ttl=300)
    value = await cache.get("client:42")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from backend.app.core.config import Settings
from backend.app.core.errors import CacheError, CacheMiss

logger = logging.getLogger(__name__)


class RedisCache:
    """Cache capability backed by Redis."""

    def __init__(
        self,
        client: aioredis.Redis,
        *,
        timeout: float = 2.0,
        connect_timeout: float = 5.0,
    ):
        self._client = client
        self._timeout = timeout
        self._connect_timeout = connect_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisCache":
        client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        return cls(
            client,
            timeout=settings.CACHE_TIMEOUT,
            connect_timeout=settings.CONNECT_TIMEOUT,
        )

    async def connect(self) -> None:
        """PING the server; raises CacheError if unreachable."""
        try:
            await asyncio.wait_for(self._client.ping(), self._connect_timeout)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise CacheError(f"failed to connect to Redis: {e}") from e
        logger.info("Redis connected")

    async def get(self, key: str) -> str:
        """Return the cached value; raises CacheMiss when absent."""
        try:
            value = await asyncio.wait_for(self._client.get(key), self._timeout)
        except asyncio.TimeoutError as e:
            raise CacheError(f"get '{key}' timed out after {self._timeout}s") from e
        except (RedisError, OSError) as e:
            raise CacheError(f"failed to get value from Redis: {e}") from e
        if value is None:
            raise CacheMiss(key)
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store a value; ttl in seconds, None or 0 for no expiry."""
        try:
            await asyncio.wait_for(
                self._client.set(key, value, ex=ttl or None),
                self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise CacheError(f"set '{key}' timed out after {self._timeout}s") from e
        except (RedisError, OSError) as e:
            raise CacheError(f"failed to set value in Redis: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis connection closed")
