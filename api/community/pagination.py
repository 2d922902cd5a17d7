from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import and_, or_

from . import models

# Cursor format: base64-encoded JSON with the sort key of the last row served.
# The feed is ordered by (is_pinned DESC, created_at DESC, id DESC), so the
# cursor carries all three values and the next page starts strictly after it.


def encode_cursor(post: models.Post) -> str:
    """
    Encode a feed cursor from the last post of the current page.

    Example:
        cursor = encode_cursor(post)
        # eyJwaW5uZWQiOiBmYWxzZSwgImNyZWF0ZWRfYXQiOiAi...
    """
    cursor_data = {
        "pinned": bool(post.is_pinned),
        "created_at": post.created_at.isoformat(),
        "id": str(post.id),
    }
    json_str = json.dumps(cursor_data)
    return base64.urlsafe_b64encode(json_str.encode()).decode()


def decode_cursor(cursor: str | None) -> tuple[bool, datetime, UUID] | None:
    """
    Decode a feed cursor.

    Returns:
        Tuple of (pinned, created_at, id) if cursor is valid, None otherwise
    """
    if not cursor:
        return None

    try:
        decoded = base64.urlsafe_b64decode(cursor.encode()).decode()
        cursor_data = json.loads(decoded)
        return (
            bool(cursor_data["pinned"]),
            datetime.fromisoformat(cursor_data["created_at"]),
            UUID(cursor_data["id"]),
        )
    except (ValueError, KeyError, TypeError, binascii.Error, UnicodeDecodeError):
        # Invalid cursor format
        return None


def apply_cursor_filter(query, cursor: str | None):
    """
    Restrict a feed query to rows after the cursor.

    Invalid cursors are ignored and the first page is served.
    """
    cursor_data = decode_cursor(cursor)
    if not cursor_data:
        return query

    pinned, created_at, last_id = cursor_data
    Post = models.Post

    same_pin_after = and_(
        Post.is_pinned == pinned,
        or_(
            Post.created_at < created_at,
            and_(Post.created_at == created_at, Post.id < last_id),
        ),
    )
    if pinned:
        # Unpinned posts all come after the last pinned one
        return query.filter(or_(Post.is_pinned == False, same_pin_after))
    return query.filter(same_pin_after)


def create_page_response(items: Sequence[Any], limit: int) -> dict[str, Any]:
    """
    Split a "limit + 1" fetch into a page and its next cursor.
    """
    has_more = len(items) > limit
    page_items = list(items[:limit])
    next_cursor = encode_cursor(page_items[-1]) if has_more and page_items else None
    return {"items": page_items, "next_cursor": next_cursor}
