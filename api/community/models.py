from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from .db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# CORE ENTITIES
# ============================================================================


class User(Base):
    """Community member with profile and subscription information."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    image = Column(String(500), nullable=True)  # Storage key of the avatar

    # Subscription
    plan = Column(String(20), nullable=False, default="free")  # free, basic, pro
    subscription_status = Column(String(20), nullable=True)  # active, canceled, past_due
    subscription_expires_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    posts = relationship("Post", back_populates="user")
    comments = relationship("Comment", back_populates="user")


class Post(Base):
    """Top-level community submission."""

    __tablename__ = "posts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Content
    title = Column(String(200), nullable=True)
    content = Column(Text, nullable=False)
    category = Column(String(20), nullable=False, default="general", index=True)

    # Moderation
    is_pinned = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)  # Soft delete

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    user = relationship("User", back_populates="posts")
    comments = relationship(
        "Comment", back_populates="post", cascade="all, delete-orphan"
    )
    attachments = relationship(
        "Attachment",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="Attachment.position",
    )

    __table_args__ = (
        Index("ix_posts_feed", is_pinned.desc(), created_at.desc()),
        Index("ix_posts_user_created", user_id, created_at.desc()),
    )


class Comment(Base):
    """Comment on a post, supporting one level of nesting."""

    __tablename__ = "comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    post_id = Column(Uuid, ForeignKey("posts.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    parent_comment_id = Column(
        Uuid, ForeignKey("comments.id"), nullable=True, index=True
    )

    content = Column(Text, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)  # Soft delete

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    post = relationship("Post", back_populates="comments")
    user = relationship("User", back_populates="comments")
    parent = relationship("Comment", remote_side=[id], backref="replies")
    attachments = relationship(
        "Attachment",
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="Attachment.position",
    )

    __table_args__ = (Index("ix_comments_post_created", post_id, created_at),)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class Attachment(Base):
    """Media object (image/video) owned by exactly one post or comment."""

    __tablename__ = "attachments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    post_id = Column(Uuid, ForeignKey("posts.id"), nullable=True, index=True)
    comment_id = Column(Uuid, ForeignKey("comments.id"), nullable=True, index=True)

    file_key = Column(String(500), nullable=False)
    file_name = Column(String(255), nullable=True)
    mime_type = Column(String(100), nullable=False)
    file_size = Column(BigInteger, nullable=False)  # Bytes
    position = Column(Integer, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    # Relationships
    post = relationship("Post", back_populates="attachments")
    comment = relationship("Comment", back_populates="attachments")

    __table_args__ = (
        CheckConstraint(
            "(post_id IS NULL) != (comment_id IS NULL)",
            name="ck_attachments_single_owner",
        ),
    )
