"""
config/redis_client.py
Async Redis connection plus the two things the API keeps there:
revoked session ids (logout) and per-IP request counters for anonymous traffic.
"""

from typing import Optional

import redis.asyncio as aioredis

from config.settings import settings

REVOKED_SESSION_PREFIX = "session:revoked:"
RATE_LIMIT_PREFIX = "rate:anon:"

# Set on startup; stays None when the app runs without Redis (tests, scripts)
redis_client: Optional[aioredis.Redis] = None


async def init_redis() -> None:
    global redis_client
    redis_client = aioredis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )
    await redis_client.ping()


async def close_redis() -> None:
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None


def get_redis() -> aioredis.Redis:
    """FastAPI dependency. Overridden with fakeredis in tests."""
    if redis_client is None:
        raise RuntimeError("Redis is not connected; init_redis() runs in the app lifespan")
    return redis_client


class SessionStore:
    def __init__(self, client: aioredis.Redis):
        self.client = client

    # ── Logout deny-list ──────────────────────────────────────
    async def revoke(self, jti: str, ttl_seconds: int) -> None:
        """Remember a logged-out session until its token would have expired anyway."""
        await self.client.set(f"{REVOKED_SESSION_PREFIX}{jti}", "1", ex=max(ttl_seconds, 1))

    async def is_revoked(self, jti: str) -> bool:
        return bool(await self.client.exists(f"{REVOKED_SESSION_PREFIX}{jti}"))

    # ── Anonymous rate limit ──────────────────────────────────
    async def allow_anonymous_request(
        self, client_ip: str, limit: int, window_seconds: int = 60
    ) -> bool:
        """
        Fixed-window counter per IP. The window starts with the first request
        and is not extended by later ones.
        """
        key = f"{RATE_LIMIT_PREFIX}{client_ip}"
        count = await self.client.incr(key)
        if count == 1:
            await self.client.expire(key, window_seconds)
        return count <= limit
