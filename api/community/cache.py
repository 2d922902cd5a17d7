"""Redis cache utility functions.

Read endpoints cache their JSON under keys named after the query they serve
(``community-posts``, ``post-comments:{post_id}``, ...). Mutations drop the
keys they affect. Every helper fails open: without REDIS_URL or on any Redis
error the cache behaves as a miss.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any
from uuid import UUID

import redis

logger = logging.getLogger(__name__)

# Redis connection
_redis_client: redis.Redis | None = None

DEFAULT_TTL_SECONDS = 300


def get_redis_client() -> redis.Redis | None:
    """
    Get or create Redis client instance.

    Returns None if REDIS_URL is not configured or the connection fails.
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    redis_url = os.getenv("REDIS_URL")
    if not redis_url:
        return None

    try:
        client = redis.from_url(redis_url, decode_responses=True)
        # Test connection
        client.ping()
        _redis_client = client
        logger.info("Redis cache connected successfully")
        return _redis_client
    except (redis.RedisError, ValueError) as e:
        logger.warning(f"Redis cache unavailable: {e}. Continuing without cache.")
        return None


def set_redis_client(client: redis.Redis | None) -> None:
    """Replace the shared client (used at shutdown and by tests)."""
    global _redis_client
    _redis_client = client


# ============================================================================
# CACHE KEYS
# ============================================================================


def recent_posts_key(category: str | None, cursor: str | None, limit: int) -> str:
    return f"community-posts:{category or 'all'}:{cursor or 'first'}:{limit}"


def post_key(post_id: UUID) -> str:
    return f"community-post:{post_id}"


def post_comments_key(post_id: UUID) -> str:
    return f"post-comments:{post_id}"


def post_comment_count_key(post_id: UUID) -> str:
    return f"post-comment-count:{post_id}"


def comment_replies_key(post_id: UUID, comment_id: UUID) -> str:
    # Scoped by post so deleting a post can drop every reply list under it
    return f"comment-replies:{post_id}:{comment_id}"


# ============================================================================
# OPERATIONS
# ============================================================================


def cache_get(key: str) -> Any | None:
    """
    Retrieve a cached value by key.

    Returns:
        Cached value if found, None otherwise
    """
    client = get_redis_client()
    if not client:
        return None

    try:
        value = client.get(key)
        if value is None:
            return None

        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return value
    except redis.RedisError as e:
        logger.warning(f"Cache get error for key '{key}': {e}")
        return None


def cache_set(key: str, value: Any, ttl: int = DEFAULT_TTL_SECONDS) -> bool:
    """
    Set a cached value with TTL.

    Args:
        key: Cache key
        value: Value to cache (JSON-serialized if dict/list)
        ttl: Time to live in seconds

    Returns:
        True if successful, False otherwise
    """
    client = get_redis_client()
    if not client:
        return False

    try:
        if isinstance(value, (dict, list)):
            serialized = json.dumps(value, default=str)
        else:
            serialized = str(value)

        client.setex(key, ttl, serialized)
        return True
    except redis.RedisError as e:
        logger.warning(f"Cache set error for key '{key}': {e}")
        return False


def cache_invalidate(pattern: str) -> int:
    """
    Invalidate cache entries matching a pattern.

    Args:
        pattern: Redis key pattern (e.g., "community-posts:*")

    Returns:
        Number of keys deleted
    """
    client = get_redis_client()
    if not client:
        return 0

    try:
        keys = list(client.scan_iter(match=pattern))
        if not keys:
            return 0

        deleted = client.delete(*keys)
        logger.info(f"Invalidated {deleted} cache entries matching pattern '{pattern}'")
        return deleted
    except redis.RedisError as e:
        logger.warning(f"Cache invalidate error for pattern '{pattern}': {e}")
        return 0


def cache_delete(*keys: str) -> int:
    """
    Delete specific cache keys.

    Returns:
        Number of keys deleted
    """
    client = get_redis_client()
    if not client or not keys:
        return 0

    try:
        return client.delete(*keys)
    except redis.RedisError as e:
        logger.warning(f"Cache delete error for keys {keys}: {e}")
        return 0


# ============================================================================
# INVALIDATION RULES
# ============================================================================


def invalidate_posts(post_id: UUID | None = None) -> None:
    """Drop feed pages, plus every entry scoped to one post if given."""
    cache_invalidate("community-posts:*")
    if post_id is not None:
        cache_delete(
            post_key(post_id),
            post_comments_key(post_id),
            post_comment_count_key(post_id),
        )
        cache_invalidate(f"comment-replies:{post_id}:*")


def invalidate_comments(
    post_id: UUID,
    parent_comment_id: UUID | None = None,
    comment_id: UUID | None = None,
) -> None:
    """Drop the comment queries touched by a comment mutation on a post."""
    keys = [
        post_comments_key(post_id),
        post_comment_count_key(post_id),
        post_key(post_id),
    ]
    if parent_comment_id is not None:
        keys.append(comment_replies_key(post_id, parent_comment_id))
    if comment_id is not None:
        keys.append(comment_replies_key(post_id, comment_id))
    cache_delete(*keys)
    # Feed items and the post detail embed comment counts
    cache_invalidate("community-posts:*")


def invalidate_author_content() -> None:
    """Drop every cached response that embeds an author summary (name, image)."""
    for pattern in (
        "community-posts:*",
        "community-post:*",
        "post-comments:*",
        "comment-replies:*",
    ):
        cache_invalidate(pattern)
