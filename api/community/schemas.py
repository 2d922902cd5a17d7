from __future__ import annotations

from datetime import datetime
from typing import Generic, Literal, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .settings import (
    COMMENT_CONTENT_MAX_LENGTH,
    COMMUNITY_ATTACHMENT_SIZE_LIMIT_BYTES,
    COMMUNITY_MAX_ATTACHMENTS,
    COMMUNITY_RECENT_POSTS_LIMIT,
    POST_CATEGORIES,
    POST_CONTENT_MAX_LENGTH,
    POST_TITLE_MAX_LENGTH,
)

PostCategory = Literal[
    "general",
    "question",
    "discussion",
    "announcement",
    "feedback",
    "showcase",
]

SubscriptionPlan = Literal["free", "basic", "pro"]

DELETED_COMMENT_PLACEHOLDER = "[deleted]"


# ============================================================================
# BASE SCHEMAS
# ============================================================================


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Generic paginated response."""

    items: list[T]
    next_cursor: str | None = None


class SuccessResponse(BaseModel):
    success: bool = True


class CountResponse(BaseModel):
    count: int


# ============================================================================
# HEALTH & CONFIG
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


class Config(BaseModel):
    """Public system configuration."""

    post_categories: list[str] = list(POST_CATEGORIES)
    max_title_length: int = POST_TITLE_MAX_LENGTH
    max_post_content_length: int = POST_CONTENT_MAX_LENGTH
    max_comment_length: int = COMMENT_CONTENT_MAX_LENGTH
    max_comment_depth: int = 1
    max_attachment_bytes: int = COMMUNITY_ATTACHMENT_SIZE_LIMIT_BYTES
    max_attachments: int = COMMUNITY_MAX_ATTACHMENTS
    recent_posts_limit: int = COMMUNITY_RECENT_POSTS_LIMIT


# ============================================================================
# USER SCHEMAS
# ============================================================================


class UserSummary(BaseModel):
    """Author info embedded in posts and comments."""

    id: UUID
    name: str | None = None
    image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserPublic(UserSummary):
    """Public user profile."""

    created_at: datetime


class UserFull(UserPublic):
    """Full profile for the authenticated user."""

    email: str
    plan: SubscriptionPlan = "free"
    plan_active: bool = True
    plan_expires_at: datetime | None = None
    is_admin: bool = False


class UserUpdate(BaseModel):
    """Update own profile request."""

    name: str | None = Field(None, min_length=1, max_length=100)
    image: str | None = Field(None, max_length=500)


# ============================================================================
# ATTACHMENT SCHEMAS
# ============================================================================


class AttachmentCreate(BaseModel):
    """Register an uploaded media object."""

    file_key: str = Field(..., min_length=1, max_length=500)
    file_name: str | None = Field(None, max_length=255)
    mime_type: str = Field(..., min_length=3, max_length=100)
    file_size: int = Field(..., gt=0)
    position: int | None = Field(None, ge=0)


class Attachment(BaseModel):
    """Media object attached to a post or comment."""

    id: UUID
    user_id: UUID
    post_id: UUID | None = None
    comment_id: UUID | None = None
    file_key: str
    file_name: str | None = None
    mime_type: str
    file_size: int
    position: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# POST SCHEMAS
# ============================================================================


class PostBase(BaseModel):
    title: str | None = Field(None, description="Optional, an empty string clears it")
    content: str

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        if len(value) > POST_TITLE_MAX_LENGTH:
            raise ValueError(f"Title must be less than {POST_TITLE_MAX_LENGTH} characters")
        return value

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        if len(value) < 1:
            raise ValueError("Content is required")
        if len(value) > POST_CONTENT_MAX_LENGTH:
            raise ValueError(f"Content must be less than {POST_CONTENT_MAX_LENGTH} characters")
        return value


class PostCreate(PostBase):
    """Create post request."""

    category: PostCategory = "general"


class PostUpdate(PostBase):
    """Update post request. A missing category keeps the current one."""

    category: PostCategory | None = None


class Post(BaseModel):
    """Post with author info."""

    id: UUID
    user_id: UUID
    title: str | None = None
    content: str
    category: PostCategory
    is_pinned: bool
    created_at: datetime
    updated_at: datetime | None = None
    user: UserSummary | None = None
    comment_count: int = 0
    attachments: list[Attachment] = []

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# COMMENT SCHEMAS
# ============================================================================


class CommentUpdate(BaseModel):
    """Update comment request."""

    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        if len(value) < 1:
            raise ValueError("Comment cannot be empty")
        if len(value) > COMMENT_CONTENT_MAX_LENGTH:
            raise ValueError(
                f"Comment must be less than {COMMENT_CONTENT_MAX_LENGTH} characters"
            )
        return value


class CommentCreate(CommentUpdate):
    """Create comment request."""

    parent_comment_id: UUID | None = None


class Comment(BaseModel):
    """Comment on a post."""

    id: UUID
    post_id: UUID
    user_id: UUID
    parent_comment_id: UUID | None = None
    content: str
    is_deleted: bool = False
    reply_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None
    user: UserSummary | None = None
    attachments: list[Attachment] = []

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def mask_deleted(self) -> "Comment":
        """Deleted comments kept as thread placeholders expose no content."""
        if self.is_deleted:
            self.content = DELETED_COMMENT_PLACEHOLDER
            self.attachments = []
        return self


