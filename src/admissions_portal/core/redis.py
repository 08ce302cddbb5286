"""
Redis Connection

Async Redis client used for shared rate-limit counters. Redis is optional:
when REDIS_URL is unset or unreachable outside production the service runs
with in-process counters instead.
"""

import logging

from redis.asyncio import Redis, from_url

logger = logging.getLogger(__name__)


async def connect_redis(url: str) -> Redis:
    """
    Open a Redis connection and verify it with PING.

    Args:
        url: Redis connection URL

    Returns:
        Connected Redis client
    """
    client = from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    return client


async def close_redis(client: Redis | None) -> None:
    """Close a Redis connection if one was opened."""
    if client is not None:
        await client.aclose()
