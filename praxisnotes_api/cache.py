"""
Redis cache for the report API

Holds the client directory lookups and the per-user generation rate counters.
Cache failures degrade to uncached calls; counter failures propagate.
"""
import redis.asyncio as redis
from redis.exceptions import RedisError
from typing import Any, Optional
import json
import os
import logging
from functools import wraps

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CACHE_TTL = int(os.getenv("CACHE_TTL", "3600"))
KEY_PREFIX = "praxisnotes:"

_redis_client: Optional[redis.Redis] = None


def cache_key(*parts) -> str:
    """Namespace a key under the application prefix"""
    return KEY_PREFIX + ":".join(str(p) for p in parts)


async def get_cache() -> redis.Redis:
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.from_url(REDIS_URL, decode_responses=True, max_connections=10)
    return _redis_client


async def close_cache():
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def _read(key: str) -> Optional[Any]:
    try:
        raw = await (await get_cache()).get(key)
    except RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None
    return json.loads(raw) if raw else None


async def _write(key: str, value: Any, ttl: int):
    try:
        await (await get_cache()).setex(key, ttl, json.dumps(value, default=str))
    except RedisError as e:
        logger.warning(f"Cache write failed for {key}: {e}")


def cache_response(ttl: int = CACHE_TTL, key_prefix: str = ""):
    """
    Cache the JSON-serializable result of an async method.
    The first positional argument (self) is left out of the key.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            key = cache_key(key_prefix, func.__name__, repr(args[1:]), repr(sorted(kwargs.items())))

            cached = await _read(key)
            if cached is not None:
                logger.debug(f"Cache hit: {key}")
                return cached

            result = await func(*args, **kwargs)
            await _write(key, result, ttl)
            return result

        return wrapper
    return decorator


async def increment_counter(key: str, window: int) -> int:
    """Increment a counter that expires ``window`` seconds after its first hit"""
    cache = await get_cache()
    count = await cache.incr(key)
    if count == 1:
        await cache.expire(key, window)
    return count
