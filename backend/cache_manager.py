"""
Redis cache for app category lookups.

Repeated syncs see the same handful of apps, so categories decided via the
iTunes Search API are kept in Redis (DB 1 by default) for a week. Redis is
optional: every helper degrades to a no-op when it cannot be reached.
"""

import logging
import os
from typing import Optional

import redis

logger = logging.getLogger(__name__)

CATEGORY_KEY_PREFIX = "category:"

_redis_client: Optional[redis.Redis] = None
_redis_unavailable = False


def get_redis_client() -> Optional[redis.Redis]:
    """
    Return the shared Redis client, connecting on first use.

    Returns None when Redis is unreachable. A failed connection is
    remembered and not retried until reset_redis_client() is called.
    """
    global _redis_client, _redis_unavailable

    if _redis_client is not None or _redis_unavailable:
        return _redis_client

    client = redis.Redis(
        host=os.getenv('REDIS_HOST', 'localhost'),
        port=int(os.getenv('REDIS_PORT', '6379')),
        db=int(os.getenv('REDIS_CACHE_DB', '1')),
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
    )
    try:
        client.ping()
    except (redis.ConnectionError, redis.TimeoutError) as e:
        logger.warning(f"Category cache disabled, Redis unreachable: {e}")
        _redis_unavailable = True
        return None

    logger.info("Category cache connected to Redis")
    _redis_client = client
    return _redis_client


def reset_redis_client():
    """Forget the connection state so the next call reconnects."""
    global _redis_client, _redis_unavailable
    _redis_client = None
    _redis_unavailable = False


def category_key(app_name: str) -> str:
    return f"{CATEGORY_KEY_PREFIX}{app_name}"


def get_cached_category(app_name: str) -> Optional[str]:
    """
    Look up a previously decided category.

    Returns:
        Category name, or None on a miss or when Redis is unavailable
    """
    client = get_redis_client()
    if client is None:
        return None

    try:
        category = client.get(category_key(app_name))
    except redis.RedisError as e:
        logger.warning(f"Category cache read failed for '{app_name}': {e}")
        return None

    logger.debug(f"Category cache {'HIT' if category else 'MISS'}: {app_name}")
    return category or None


def cache_category(app_name: str, category: str, ttl: int) -> bool:
    """
    Store a category for an app.

    Args:
        app_name: App name as extracted from the receipt
        category: Decided category
        ttl: Time-to-live in seconds

    Returns:
        True if written, False otherwise
    """
    client = get_redis_client()
    if client is None:
        return False

    try:
        client.setex(category_key(app_name), ttl, category)
    except redis.RedisError as e:
        logger.warning(f"Category cache write failed for '{app_name}': {e}")
        return False

    logger.debug(f"Category cached: {app_name} -> {category} (TTL: {ttl}s)")
    return True
