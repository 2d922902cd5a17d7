"""Attachment registration for posts and comments.

Binary uploads go straight to object storage; this service only records the
resulting storage key and metadata against the owning post or comment.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models
from ..settings import COMMUNITY_ATTACHMENT_SIZE_LIMIT_BYTES

# Attachments are media only
ALLOWED_MIME_PREFIXES = ("image/", "video/")


def is_allowed_mime_type(mime_type: str) -> bool:
    mime_type = mime_type.strip().lower()
    if not mime_type.startswith(ALLOWED_MIME_PREFIXES):
        return False
    # "image/" alone names no concrete format
    _, _, subtype = mime_type.partition("/")
    return bool(subtype.strip())


def validate_file_size(file_size: int) -> tuple[bool, str | None]:
    """
    Validate attachment size against the configured limit.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if file_size <= 0:
        return False, "Attachment size must be positive"
    if file_size > COMMUNITY_ATTACHMENT_SIZE_LIMIT_BYTES:
        limit_mb = COMMUNITY_ATTACHMENT_SIZE_LIMIT_BYTES / (1024 * 1024)
        return False, f"Attachment exceeds maximum size of {limit_mb:g} MB"
    return True, None


def _owner_filter(post_id: UUID | None, comment_id: UUID | None):
    if post_id is not None:
        return models.Attachment.post_id == post_id
    return models.Attachment.comment_id == comment_id


def count_attachments(
    db: Session, post_id: UUID | None = None, comment_id: UUID | None = None
) -> int:
    return (
        db.query(func.count(models.Attachment.id))
        .filter(_owner_filter(post_id, comment_id))
        .scalar()
    )


def next_position(
    db: Session, post_id: UUID | None = None, comment_id: UUID | None = None
) -> int:
    current = (
        db.query(func.max(models.Attachment.position))
        .filter(_owner_filter(post_id, comment_id))
        .scalar()
    )
    return 0 if current is None else current + 1


def create_attachment(
    db: Session,
    user_id: UUID,
    file_key: str,
    mime_type: str,
    file_size: int,
    file_name: str | None = None,
    position: int | None = None,
    post_id: UUID | None = None,
    comment_id: UUID | None = None,
) -> models.Attachment:
    if (post_id is None) == (comment_id is None):
        raise ValueError("Attachment must belong to exactly one post or comment")

    if position is None:
        position = next_position(db, post_id=post_id, comment_id=comment_id)

    attachment = models.Attachment(
        user_id=user_id,
        post_id=post_id,
        comment_id=comment_id,
        file_key=file_key,
        file_name=file_name,
        mime_type=mime_type.lower(),
        file_size=file_size,
        position=position,
    )
    db.add(attachment)
    db.commit()
    db.refresh(attachment)
    return attachment


def find_attachment_by_id(db: Session, attachment_id: UUID) -> models.Attachment | None:
    return (
        db.query(models.Attachment)
        .filter(models.Attachment.id == attachment_id)
        .first()
    )


def find_attachments(
    db: Session, post_id: UUID | None = None, comment_id: UUID | None = None
) -> list[models.Attachment]:
    return (
        db.query(models.Attachment)
        .filter(_owner_filter(post_id, comment_id))
        .order_by(models.Attachment.position.asc(), models.Attachment.created_at.asc())
        .all()
    )


def delete_attachment(db: Session, attachment: models.Attachment) -> None:
    db.delete(attachment)
    db.commit()
