"""Per-user creation limits for posts and comments."""

from __future__ import annotations

import logging

import redis

from ..cache import get_redis_client

logger = logging.getLogger(__name__)


def check_rate_limit(key: str, limit: int, window_seconds: int = 60) -> tuple[bool, int]:
    """
    Count one creation attempt against a fixed window.

    The counter is incremented before it is compared, so concurrent requests
    cannot all slip under the limit. The window starts on the first hit and
    is not extended by later ones.

    Returns:
        Tuple of (allowed, remaining). Without Redis every attempt is allowed.
    """
    client = get_redis_client()
    if not client:
        return True, limit

    try:
        attempts = client.incr(key)
        if attempts == 1:
            client.expire(key, window_seconds)
    except redis.RedisError as e:
        logger.warning(f"Rate limiter unavailable for '{key}': {e}")
        return True, limit

    if attempts > limit:
        logger.info(f"Rate limit hit for '{key}' ({attempts}/{limit})")
        return False, 0
    return True, limit - attempts
