"""Shared async Redis client for the rotation queue store."""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from helpdesk.config import settings

logger = logging.getLogger(__name__)

_client: Redis | None = None


def get_redis() -> Redis:
    """Lazily create the process-wide client. Socket timeouts bound every call."""
    global _client
    if _client is None:
        _client = Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.store_timeout_seconds,
            socket_connect_timeout=settings.store_timeout_seconds,
        )
        logger.info("Redis client created")
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
