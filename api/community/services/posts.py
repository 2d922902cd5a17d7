"""Post data access."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from .. import models
from ..pagination import apply_cursor_filter


def create_post(
    db: Session,
    user_id: UUID,
    content: str,
    title: str | None = None,
    category: str = "general",
) -> models.Post:
    post = models.Post(
        user_id=user_id,
        title=title,
        content=content,
        category=category,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


def find_post_by_id(db: Session, post_id: UUID) -> models.Post | None:
    """Find a post by id, including soft-deleted rows."""
    return db.query(models.Post).filter(models.Post.id == post_id).first()


def find_post_by_id_with_user(db: Session, post_id: UUID) -> models.Post | None:
    return (
        db.query(models.Post)
        .options(joinedload(models.Post.user))
        .filter(models.Post.id == post_id)
        .first()
    )


def find_live_post(db: Session, post_id: UUID) -> models.Post | None:
    """Find a post that has not been soft-deleted."""
    return (
        db.query(models.Post)
        .filter(models.Post.id == post_id, models.Post.deleted_at.is_(None))
        .first()
    )


def find_recent_posts(
    db: Session,
    limit: int,
    category: str | None = None,
    cursor: str | None = None,
) -> list[models.Post]:
    """
    Recent feed: pinned posts first, then newest first.

    Fetches one row more than ``limit`` so callers can tell whether another
    page exists.
    """
    query = (
        db.query(models.Post)
        .options(joinedload(models.Post.user), selectinload(models.Post.attachments))
        .filter(models.Post.deleted_at.is_(None))
    )
    if category:
        query = query.filter(models.Post.category == category)

    query = apply_cursor_filter(query, cursor)
    query = query.order_by(
        models.Post.is_pinned.desc(),
        models.Post.created_at.desc(),
        models.Post.id.desc(),
    )
    return query.limit(limit + 1).all()


def find_posts_by_user_id(db: Session, user_id: UUID) -> list[models.Post]:
    return (
        db.query(models.Post)
        .options(joinedload(models.Post.user), selectinload(models.Post.attachments))
        .filter(models.Post.user_id == user_id, models.Post.deleted_at.is_(None))
        .order_by(models.Post.created_at.desc())
        .all()
    )


def update_post(
    db: Session,
    post: models.Post,
    title: str | None,
    content: str,
    category: str | None = None,
) -> models.Post:
    post.title = title
    post.content = content
    if category is not None:
        post.category = category
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post: models.Post) -> bool:
    """Soft delete a post. Returns False if it was already deleted."""
    if post.deleted_at is not None:
        return False
    post.deleted_at = datetime.now(timezone.utc)
    db.commit()
    return True


def set_post_pinned(db: Session, post: models.Post, pinned: bool) -> models.Post:
    post.is_pinned = pinned
    db.commit()
    db.refresh(post)
    return post


def annotate_posts_with_comment_counts(db: Session, posts: list[models.Post]) -> None:
    """
    Attach ``comment_count`` (live comments, replies included) to each post.

    One grouped query for the whole page.
    """
    if not posts:
        return

    post_ids = [p.id for p in posts]
    rows = (
        db.query(models.Comment.post_id, func.count(models.Comment.id))
        .filter(
            models.Comment.post_id.in_(post_ids),
            models.Comment.deleted_at.is_(None),
        )
        .group_by(models.Comment.post_id)
        .all()
    )
    counts = {post_id: count for post_id, count in rows}

    for post in posts:
        post.comment_count = counts.get(post.id, 0)
