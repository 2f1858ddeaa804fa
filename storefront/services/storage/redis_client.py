"""Shared Redis connection for the storefront record stores."""

from __future__ import annotations

import redis.asyncio as redis

from storefront.config import settings

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a singleton Redis client for the current process."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            health_check_interval=30,
        )
    return _redis_client


def key(*parts: str) -> str:
    """Build a namespaced Redis key."""

    return settings.REDIS_KEY_PREFIX + ":".join(parts)
