from __future__ import annotations

from redis.asyncio import Redis

from app.core.config import get_settings


_redis_client: Redis | None = None


async def get_redis() -> Redis:
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    return _redis_client


async def acquire_lock(redis: Redis, key: str, ttl_sec: int) -> bool:
    """Claim ``key`` for ``ttl_sec`` seconds; False when someone else holds it."""
    return bool(await redis.set(key, "1", ex=ttl_sec, nx=True))


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
