"""
Rate Limiting

Sliding-window rate limiting backed by Redis sorted sets, falling back to
process memory when no Redis client is available.

Applied to:
- Login attempts, keyed by client IP (slows credential stuffing)
- Admin status updates, keyed by admin id (prevents mass operations)
"""

import logging
import time
import uuid

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# Seconds between scans that drop idle in-memory keys
MEMORY_SWEEP_INTERVAL = 60


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


class RateLimiter:
    """
    Sliding-window limiter.

    The memory store is per instance, so every AppContext (and every test app)
    starts with empty counters.
    """

    def __init__(self, redis_client: Redis | None = None):
        self.redis_client = redis_client
        self._memory_store: dict[str, list[float]] = {}
        # key -> time its newest hit leaves the window
        self._memory_expiry: dict[str, float] = {}
        self._last_sweep = 0.0

    async def _check_redis(self, key: str, limit: int, window_seconds: int) -> bool:
        now = time.time()
        window_start = now - window_seconds

        pipe = self.redis_client.pipeline()
        pipe.zremrangebyscore(key, 0, window_start)
        pipe.zcard(key)
        pipe.zadd(key, {f"{now}:{uuid.uuid4().hex[:8]}": now})
        pipe.expire(key, window_seconds)
        results = await pipe.execute()

        return results[1] < limit

    def _sweep_memory(self, now: float) -> None:
        """Forget keys with no hit left in their window."""
        if now - self._last_sweep < MEMORY_SWEEP_INTERVAL:
            return
        self._last_sweep = now

        expired = [key for key, expires in self._memory_expiry.items() if expires <= now]
        for key in expired:
            self._memory_store.pop(key, None)
            self._memory_expiry.pop(key, None)

    def _check_memory(self, key: str, limit: int, window_seconds: int) -> bool:
        now = time.time()
        window_start = now - window_seconds
        self._sweep_memory(now)

        hits = [ts for ts in self._memory_store.get(key, []) if ts > window_start]
        allowed = len(hits) < limit
        if allowed:
            hits.append(now)

        self._memory_store[key] = hits
        self._memory_expiry[key] = hits[-1] + window_seconds
        return allowed

    async def check(self, key: str, limit: int, window_seconds: int) -> bool:
        """
        Record a hit for key and report whether it is within the limit.

        Returns:
            True if the request is allowed, False if the limit is exceeded
        """
        if self.redis_client is not None:
            try:
                return await self._check_redis(key, limit, window_seconds)
            except RedisError as e:
                logger.warning(f"Redis rate limit check failed, using memory: {e}")

        return self._check_memory(key, limit, window_seconds)

    async def enforce(self, key: str, limit: int, window_seconds: int) -> None:
        """Raise RateLimitExceeded if key is over its limit."""
        if not await self.check(key, limit, window_seconds):
            logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
            raise RateLimitExceeded(limit, window_seconds)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


__all__ = ["RateLimiter", "RateLimitExceeded", "client_ip"]
