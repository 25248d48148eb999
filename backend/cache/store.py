"""Thin async key-value store over Redis.

A miss returns ``None``. An unreachable or failing Redis raises
``CacheUnavailableError`` so callers can tell the two apart.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CacheUnavailableError(Exception):
    """The backing store could not be reached or rejected the command."""


class CacheStore:
    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> CacheStore:
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except RedisError as exc:
            raise CacheUnavailableError(f"get {key}: {exc}") from exc
        if isinstance(value, bytes):
            value = value.decode()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store *value* under *key*, expiring after *ttl_seconds*."""
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            raise CacheUnavailableError(f"set {key}: {exc}") from exc

    async def incr_with_expiry(self, key: str, amount: int, ttl_seconds: int) -> int:
        """Atomically add *amount* to a counter and refresh its expiry.

        Returns the new counter value.
        """
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incrby(key, amount)
                pipe.expire(key, ttl_seconds)
                total, _ = await pipe.execute()
        except RedisError as exc:
            raise CacheUnavailableError(f"incrby {key}: {exc}") from exc
        return int(total)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as exc:
            logger.warning("Cache ping failed: %s", exc)
            return False

    async def close(self) -> None:
        await self._client.aclose()
