"""Redis-backed counter store.

Uses ``INCR`` for the atomic increment and ``EXPIRE`` for the window TTL, so
every worker sharing the Redis instance enforces the same limits.
"""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.adapters.rate_limit.base import AbstractCounterStore
from app.core.errors import CounterStoreError

logger = logging.getLogger(__name__)


class RedisCounterStore(AbstractCounterStore):
    """Counter store on top of ``redis.asyncio``."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str, *, timeout_seconds: float = 1.0) -> "RedisCounterStore":
        """Create a store with a client connected lazily to ``url``.

        Short socket timeouts keep an unreachable Redis from stalling requests;
        the limiter fails open on the resulting error.
        """
        client = redis.from_url(
            url,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client)

    async def increment(self, key: str) -> int:
        try:
            return int(await self._redis.incr(key))
        except RedisError as exc:
            logger.error(
                "counter_store.increment_failed",
                extra={"backend": "redis", "error_type": type(exc).__name__},
            )
            raise CounterStoreError(f"Redis INCR failed: {exc}") from exc

    async def set_expiry(self, key: str, seconds: int) -> None:
        try:
            await self._redis.expire(key, seconds)
        except RedisError as exc:
            logger.error(
                "counter_store.expire_failed",
                extra={"backend": "redis", "error_type": type(exc).__name__},
            )
            raise CounterStoreError(f"Redis EXPIRE failed: {exc}") from exc

    async def close(self) -> None:
        await self._redis.aclose()
