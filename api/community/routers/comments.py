"""Comment management endpoints."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, require_ownership
from ..cache import (
    cache_get,
    cache_set,
    comment_replies_key,
    invalidate_comments,
    post_comment_count_key,
    post_comments_key,
)
from ..deps import get_db
from ..services import comments as comment_service
from ..services import posts as post_service
from ..services.rate_limit import check_rate_limit
from ..settings import COMMUNITY_COMMENT_RATE_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Comments"])


def _require_live_post(db: Session, post_id: UUID) -> models.Post:
    post = post_service.find_live_post(db, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def get_live_comment_or_404(db: Session, comment_id: UUID) -> models.Comment:
    comment = comment_service.find_live_comment(db, comment_id)
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return comment


@router.get("/posts/{post_id}/comments", response_model=list[schemas.Comment])
def list_post_comments(
    post_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Comment]:
    """
    List top-level comments of a post, oldest first.

    Replies are fetched per comment from /comments/{id}/replies. Deleted
    comments are filtered out unless they still have replies, in which case
    they are returned as "[deleted]" placeholders.
    """
    _require_live_post(db, post_id)

    cached = cache_get(post_comments_key(post_id))
    if cached is not None:
        return [schemas.Comment.model_validate(c) for c in cached]

    comments = [
        schemas.Comment.model_validate(c)
        for c in comment_service.find_post_comments(db, post_id)
    ]
    cache_set(post_comments_key(post_id), [c.model_dump(mode="json") for c in comments])
    return comments


@router.get("/posts/{post_id}/comments/count", response_model=schemas.CountResponse)
def get_post_comment_count(
    post_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.CountResponse:
    """Number of live comments on a post, replies included."""
    _require_live_post(db, post_id)

    cached = cache_get(post_comment_count_key(post_id))
    if cached is not None:
        return schemas.CountResponse(count=int(cached))

    count = comment_service.count_post_comments(db, post_id)
    cache_set(post_comment_count_key(post_id), count)
    return schemas.CountResponse(count=count)


@router.post(
    "/posts/{post_id}/comments",
    response_model=schemas.Comment,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    post_id: UUID,
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    """
    Comment on a post, or reply to a top-level comment.

    Threads are one level deep: a reply's parent must be a live top-level
    comment on the same post.
    """
    _require_live_post(db, post_id)

    allowed, _remaining = check_rate_limit(
        f"ratelimit:comment:{current_user.id}", COMMUNITY_COMMENT_RATE_LIMIT
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many comments, slow down",
        )

    if payload.parent_comment_id:
        parent = comment_service.find_comment_by_id(db, payload.parent_comment_id)
        if not parent or parent.post_id != post_id or parent.deleted_at is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid parent comment",
            )
        if parent.parent_comment_id is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot reply to a reply",
            )

    comment = comment_service.create_comment(
        db,
        post_id=post_id,
        user_id=current_user.id,
        content=payload.content,
        parent_comment_id=payload.parent_comment_id,
    )
    logger.info(
        f"User {current_user.id} commented {comment.id} on post {post_id}"
        + (f" in reply to {payload.parent_comment_id}" if payload.parent_comment_id else "")
    )

    invalidate_comments(post_id, parent_comment_id=payload.parent_comment_id)

    return schemas.Comment.model_validate(comment)


@router.get("/comments/{id}/replies", response_model=list[schemas.Comment])
def list_comment_replies(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Comment]:
    """List live replies to a comment, oldest first."""
    comment = comment_service.find_comment_by_id(db, id)
    if not comment or not post_service.find_live_post(db, comment.post_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")

    cache_key = comment_replies_key(comment.post_id, id)
    cached = cache_get(cache_key)
    if cached is not None:
        return [schemas.Comment.model_validate(c) for c in cached]

    replies = [
        schemas.Comment.model_validate(c)
        for c in comment_service.find_comment_replies(db, id)
    ]
    cache_set(cache_key, [r.model_dump(mode="json") for r in replies])
    return replies


@router.patch("/comments/{id}", response_model=schemas.Comment)
def update_comment(
    id: UUID,
    payload: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    """Edit an own comment."""
    comment = get_live_comment_or_404(db, id)
    require_ownership(
        comment.user_id,
        current_user,
        detail="Unauthorized: You can only edit your own comments",
    )

    comment = comment_service.update_comment(db, comment, payload.content)
    logger.info(f"User {current_user.id} updated comment {id}")

    invalidate_comments(
        comment.post_id,
        parent_comment_id=comment.parent_comment_id,
        comment_id=comment.id,
    )

    return schemas.Comment.model_validate(comment)


@router.delete("/comments/{id}", response_model=schemas.SuccessResponse)
def delete_comment(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.SuccessResponse:
    """Delete an own comment (soft delete)."""
    comment = get_live_comment_or_404(db, id)
    require_ownership(
        comment.user_id,
        current_user,
        detail="Unauthorized: You can only delete your own comments",
    )

    if not comment_service.delete_comment(db, comment):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete comment",
        )
    logger.info(f"User {current_user.id} deleted comment {id}")

    invalidate_comments(
        comment.post_id,
        parent_comment_id=comment.parent_comment_id,
        comment_id=comment.id,
    )

    return schemas.SuccessResponse()
