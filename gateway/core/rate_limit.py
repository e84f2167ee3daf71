"""
Rate limiting - fixed window counters per client in Redis.
Challenge: Share limits across gateway replicas; keep serving if Redis is down.
Design: INCR a per-window key and EXPIRE it in the same transaction. Redis errors allow the request.
"""

import logging
import time
from dataclasses import dataclass

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_seconds),
        }


class FixedWindowRateLimiter:
    """At most `limit` hits per client per `window_seconds`."""

    def __init__(self, redis: Redis, limit: int, window_seconds: int, prefix: str = "gateway:ratelimit"):
        self.redis = redis
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    def _window(self, now: float) -> tuple[int, int]:
        window = int(now // self.window_seconds)
        reset = self.window_seconds - int(now % self.window_seconds)
        return window, reset

    async def hit(self, client_key: str, now: float | None = None) -> RateLimitResult | None:
        """Count one request. Returns None when the counter store is unavailable."""
        now = time.time() if now is None else now
        window, reset = self._window(now)
        key = f"{self.prefix}:{client_key}:{window}"
        try:
            # One MULTI/EXEC: the counter never exists without a TTL
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, self.window_seconds)
                count, _ = await pipe.execute()
        except (RedisError, OSError) as e:
            logger.warning("Rate limiter unavailable, allowing request: %s", e)
            return None
        return RateLimitResult(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(self.limit - count, 0),
            reset_seconds=reset,
        )

    async def aclose(self) -> None:
        await self.redis.aclose()
