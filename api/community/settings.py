"""Centralized environment-driven settings.

Keep this module lightweight: stdlib only, no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _list_env(name: str, default: str = "") -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


POST_CATEGORIES: tuple[str, ...] = (
    "general",
    "question",
    "discussion",
    "announcement",
    "feedback",
    "showcase",
)

SUBSCRIPTION_PLANS: tuple[str, ...] = ("free", "basic", "pro")

# Form bounds shared by schemas and the public /config endpoint
POST_TITLE_MAX_LENGTH = 200
POST_CONTENT_MAX_LENGTH = 10000
COMMENT_CONTENT_MAX_LENGTH = 5000

# Default page size for the recent posts feed.
# Configured via .env: COMMUNITY_RECENT_POSTS_LIMIT=20
COMMUNITY_RECENT_POSTS_LIMIT: int = _int_env("COMMUNITY_RECENT_POSTS_LIMIT", 20)

# Maximum size for a single attachment (bytes).
# Configured via .env: COMMUNITY_ATTACHMENT_SIZE_LIMIT=52428800  (50 MiB)
COMMUNITY_ATTACHMENT_SIZE_LIMIT_BYTES: int = _int_env(
    "COMMUNITY_ATTACHMENT_SIZE_LIMIT", 50 * 1024 * 1024
)

# Maximum number of attachments on a single post or comment
COMMUNITY_MAX_ATTACHMENTS: int = _int_env("COMMUNITY_MAX_ATTACHMENTS", 10)

# Per-user creation limits (requests per minute)
COMMUNITY_POST_RATE_LIMIT: int = _int_env("COMMUNITY_POST_RATE_LIMIT", 10)
COMMUNITY_COMMENT_RATE_LIMIT: int = _int_env("COMMUNITY_COMMENT_RATE_LIMIT", 30)


def get_admin_emails() -> list[str]:
    """Admin emails from ADMIN_EMAILS, trimmed and lowercased.

    Read on every call so tests and operators can change it without a restart.
    """
    return [email.lower() for email in _list_env("ADMIN_EMAILS")]


def get_cors_origins() -> list[str]:
    return _list_env("CORS_ORIGINS", "http://localhost:3000,http://localhost")
