import inspect
import json
import logging
from functools import wraps
from typing import Any, Callable, TypeVar

import redis

from festival_booking.utils.config import settings

logger = logging.getLogger(__name__)

# Create Redis connection, caching is off when no host is configured
redis_client = None
if settings.REDIS_HOST:
    redis_client = redis.Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=0,
        decode_responses=True
    )

T = TypeVar('T')


def build_cache_key(key_prefix: str, *parts: Any) -> str:
    return ":".join([key_prefix, *(str(part) for part in parts if part is not None)])


def cache_data(key_prefix: str, expire_time: int = settings.CACHE_EXPIRE_SECONDS):
    """
    Decorator for caching JSON serialisable results of repository reads in Redis

    Args:
        key_prefix: Namespace of the cache key, followed by the call arguments
        expire_time: Time in seconds before cache expires
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            # Skip the repository instance
            key_args = args[1:] if args and hasattr(args[0], 'model') else args
            cache_key = build_cache_key(
                key_prefix, *key_args, *(f"{k}={v}" for k, v in sorted(kwargs.items()))
            )

            if redis_client is not None:
                try:
                    cached = redis_client.get(cache_key)
                except redis.RedisError as e:
                    logger.warning(f"Cache read failed for key {cache_key}: {e}")
                    cached = None
                if cached:
                    try:
                        logger.debug(f"Cache hit for key: {cache_key}")
                        return json.loads(cached)
                    except (json.JSONDecodeError, TypeError) as e:
                        logger.warning(f"Failed to decode cached data for {cache_key}: {e}")
                        redis_client.delete(cache_key)

            if inspect.iscoroutinefunction(func):
                result = await func(*args, **kwargs)
            else:
                result = func(*args, **kwargs)

            update_cache(cache_key, result, expire_time=expire_time)
            return result

        return async_wrapper
    return decorator


def invalidate_cache(key_pattern: str) -> int:
    """Clear cache entries matching the given pattern"""
    if redis_client is None:
        return 0

    # Use SCAN instead of KEYS
    keys_to_delete = []
    try:
        cursor = 0
        while True:
            cursor, keys = redis_client.scan(cursor, match=key_pattern, count=100)
            keys_to_delete.extend(keys)
            if cursor == 0:
                break

        if keys_to_delete:
            redis_client.delete(*keys_to_delete)
            logger.info(f"Invalidated {len(keys_to_delete)} cache entries for {key_pattern}")
    except redis.RedisError as e:
        logger.warning(f"Cache invalidation failed for {key_pattern}: {e}")
        return 0
    return len(keys_to_delete)


def update_cache(key: str, data: Any, expire_time: int = settings.CACHE_EXPIRE_SECONDS):
    """Update cache with new data"""
    if redis_client is None or data is None:
        return
    try:
        serialized = json.dumps(data, default=str)
        redis_client.setex(key, expire_time, serialized)
        logger.debug(f"Updated cache for key: {key}")
    except (TypeError, ValueError, redis.RedisError) as e:
        logger.warning(f"Failed to update cache for key {key}: {e}")
