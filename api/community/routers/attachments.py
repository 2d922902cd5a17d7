"""Attachment registration endpoints."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, require_ownership
from ..cache import cache_delete, comment_replies_key, invalidate_posts, post_comments_key
from ..deps import get_db
from ..services import attachments as attachment_service
from ..services import comments as comment_service
from ..services import posts as post_service
from ..settings import COMMUNITY_MAX_ATTACHMENTS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attachments"])


def _validate_payload(payload: schemas.AttachmentCreate) -> None:
    if not attachment_service.is_allowed_mime_type(payload.mime_type):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported media type. Only images and videos can be attached",
        )

    is_valid, error = attachment_service.validate_file_size(payload.file_size)
    if not is_valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)


def _require_capacity(
    db: Session, post_id: UUID | None = None, comment_id: UUID | None = None
) -> None:
    count = attachment_service.count_attachments(db, post_id=post_id, comment_id=comment_id)
    if count >= COMMUNITY_MAX_ATTACHMENTS:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Maximum attachments ({COMMUNITY_MAX_ATTACHMENTS}) exceeded",
        )


def _invalidate_for(db: Session, attachment: models.Attachment) -> None:
    if attachment.post_id is not None:
        invalidate_posts(attachment.post_id)
        return
    comment = comment_service.find_comment_by_id(db, attachment.comment_id)
    if comment is None:
        return
    keys = [post_comments_key(comment.post_id)]
    if comment.parent_comment_id is not None:
        keys.append(comment_replies_key(comment.post_id, comment.parent_comment_id))
    cache_delete(*keys)


def _parent_is_live(db: Session, attachment: models.Attachment) -> bool:
    if attachment.post_id is not None:
        return post_service.find_live_post(db, attachment.post_id) is not None
    return comment_service.find_live_comment(db, attachment.comment_id) is not None


@router.post(
    "/posts/{post_id}/attachments",
    response_model=schemas.Attachment,
    status_code=status.HTTP_201_CREATED,
)
def attach_to_post(
    post_id: UUID,
    payload: schemas.AttachmentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Attachment:
    """Register an uploaded media object on an own post."""
    post = post_service.find_live_post(db, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    require_ownership(
        post.user_id,
        current_user,
        detail="Unauthorized: You can only attach media to your own posts",
    )
    _validate_payload(payload)
    _require_capacity(db, post_id=post_id)

    attachment = attachment_service.create_attachment(
        db,
        user_id=current_user.id,
        post_id=post_id,
        file_key=payload.file_key,
        file_name=payload.file_name,
        mime_type=payload.mime_type,
        file_size=payload.file_size,
        position=payload.position,
    )
    logger.info(f"User {current_user.id} attached {attachment.id} to post {post_id}")

    _invalidate_for(db, attachment)

    return schemas.Attachment.model_validate(attachment)


@router.get("/posts/{post_id}/attachments", response_model=list[schemas.Attachment])
def list_post_attachments(
    post_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Attachment]:
    if not post_service.find_live_post(db, post_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return [
        schemas.Attachment.model_validate(a)
        for a in attachment_service.find_attachments(db, post_id=post_id)
    ]


@router.post(
    "/comments/{comment_id}/attachments",
    response_model=schemas.Attachment,
    status_code=status.HTTP_201_CREATED,
)
def attach_to_comment(
    comment_id: UUID,
    payload: schemas.AttachmentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Attachment:
    """Register an uploaded media object on an own comment."""
    comment = comment_service.find_live_comment(db, comment_id)
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    require_ownership(
        comment.user_id,
        current_user,
        detail="Unauthorized: You can only attach media to your own comments",
    )
    _validate_payload(payload)
    _require_capacity(db, comment_id=comment_id)

    attachment = attachment_service.create_attachment(
        db,
        user_id=current_user.id,
        comment_id=comment_id,
        file_key=payload.file_key,
        file_name=payload.file_name,
        mime_type=payload.mime_type,
        file_size=payload.file_size,
        position=payload.position,
    )
    logger.info(f"User {current_user.id} attached {attachment.id} to comment {comment_id}")

    _invalidate_for(db, attachment)

    return schemas.Attachment.model_validate(attachment)


@router.get("/comments/{comment_id}/attachments", response_model=list[schemas.Attachment])
def list_comment_attachments(
    comment_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Attachment]:
    if not comment_service.find_live_comment(db, comment_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return [
        schemas.Attachment.model_validate(a)
        for a in attachment_service.find_attachments(db, comment_id=comment_id)
    ]


@router.delete("/attachments/{id}", response_model=schemas.SuccessResponse)
def delete_attachment(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.SuccessResponse:
    """Remove an own attachment."""
    attachment = attachment_service.find_attachment_by_id(db, id)
    if not attachment or not _parent_is_live(db, attachment):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attachment not found")
    require_ownership(
        attachment.user_id,
        current_user,
        detail="Unauthorized: You can only delete your own attachments",
    )

    _invalidate_for(db, attachment)
    attachment_service.delete_attachment(db, attachment)
    logger.info(f"User {current_user.id} deleted attachment {id}")

    return schemas.SuccessResponse()
