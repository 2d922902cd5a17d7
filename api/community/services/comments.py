"""Comment data access.

Threads are an adjacency list one level deep: top-level comments have no
``parent_comment_id`` and replies point at a top-level comment.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from .. import models


def create_comment(
    db: Session,
    post_id: UUID,
    user_id: UUID,
    content: str,
    parent_comment_id: UUID | None = None,
) -> models.Comment:
    comment = models.Comment(
        post_id=post_id,
        user_id=user_id,
        content=content,
        parent_comment_id=parent_comment_id,
    )
    db.add(comment)
    db.commit()

    # Reload with author relationship so the response carries the author
    return find_comment_by_id(db, comment.id)


def find_comment_by_id(db: Session, comment_id: UUID) -> models.Comment | None:
    """Find a comment by id, including soft-deleted rows."""
    return (
        db.query(models.Comment)
        .options(joinedload(models.Comment.user))
        .filter(models.Comment.id == comment_id)
        .first()
    )


def find_live_comment(db: Session, comment_id: UUID) -> models.Comment | None:
    """Find a comment that is not deleted and whose post is not deleted."""
    return (
        db.query(models.Comment)
        .options(joinedload(models.Comment.user))
        .join(models.Post, models.Post.id == models.Comment.post_id)
        .filter(
            models.Comment.id == comment_id,
            models.Comment.deleted_at.is_(None),
            models.Post.deleted_at.is_(None),
        )
        .first()
    )


def _live_reply_counts(db: Session, parent_ids: list[UUID]) -> dict[UUID, int]:
    if not parent_ids:
        return {}
    rows = (
        db.query(models.Comment.parent_comment_id, func.count(models.Comment.id))
        .filter(
            models.Comment.parent_comment_id.in_(parent_ids),
            models.Comment.deleted_at.is_(None),
        )
        .group_by(models.Comment.parent_comment_id)
        .all()
    )
    return {parent_id: count for parent_id, count in rows}


def find_post_comments(db: Session, post_id: UUID) -> list[models.Comment]:
    """
    Top-level comments of a post, oldest first, each annotated with
    ``reply_count``.

    A deleted top-level comment is kept while it still has live replies so
    the thread keeps its shape; the schema renders it as a placeholder.
    """
    comments = (
        db.query(models.Comment)
        .options(joinedload(models.Comment.user), selectinload(models.Comment.attachments))
        .filter(
            models.Comment.post_id == post_id,
            models.Comment.parent_comment_id.is_(None),
        )
        .order_by(models.Comment.created_at.asc(), models.Comment.id.asc())
        .all()
    )

    reply_counts = _live_reply_counts(db, [c.id for c in comments])

    visible = []
    for comment in comments:
        comment.reply_count = reply_counts.get(comment.id, 0)
        if comment.deleted_at is not None and comment.reply_count == 0:
            continue
        visible.append(comment)
    return visible


def find_comment_replies(db: Session, comment_id: UUID) -> list[models.Comment]:
    """Live replies to a comment, oldest first."""
    return (
        db.query(models.Comment)
        .options(joinedload(models.Comment.user), selectinload(models.Comment.attachments))
        .filter(
            models.Comment.parent_comment_id == comment_id,
            models.Comment.deleted_at.is_(None),
        )
        .order_by(models.Comment.created_at.asc(), models.Comment.id.asc())
        .all()
    )


def count_post_comments(db: Session, post_id: UUID) -> int:
    """Number of live comments on a post, replies included."""
    return (
        db.query(func.count(models.Comment.id))
        .filter(
            models.Comment.post_id == post_id,
            models.Comment.deleted_at.is_(None),
        )
        .scalar()
    )


def update_comment(db: Session, comment: models.Comment, content: str) -> models.Comment:
    comment.content = content
    db.commit()
    return find_comment_by_id(db, comment.id)


def delete_comment(db: Session, comment: models.Comment) -> bool:
    """Soft delete a comment. Returns False if it was already deleted."""
    if comment.deleted_at is not None:
        return False
    comment.deleted_at = datetime.now(timezone.utc)
    db.commit()
    return True
