"""User profile endpoints."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..cache import invalidate_author_content
from ..deps import get_db
from ..services import posts as post_service
from ..services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _full_profile(db: Session, user: models.User) -> schemas.UserFull:
    user_plan = user_service.get_user_plan(db, user.id)
    return schemas.UserFull(
        id=user.id,
        name=user.name,
        image=user.image,
        created_at=user.created_at,
        email=user.email,
        plan=user_plan.plan,
        plan_active=user_plan.is_active,
        plan_expires_at=user_plan.expires_at,
        is_admin=user_service.is_user_admin(db, user.id),
    )


@router.get("/me", response_model=schemas.UserFull)
def get_me(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.UserFull:
    """Full profile of the authenticated user, including plan and admin status."""
    return _full_profile(db, current_user)


@router.patch("/me", response_model=schemas.UserFull)
def update_me(
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.UserFull:
    """Update the authenticated user's display name and avatar."""
    user = user_service.update_user_profile(
        db, current_user, name=payload.name, image=payload.image
    )
    logger.info(f"User {user.id} updated their profile")

    # Posts and comments embed the author's name and avatar
    invalidate_author_content()

    return _full_profile(db, user)


@router.get("/{id}", response_model=schemas.UserPublic)
def get_user(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.UserPublic:
    """Public profile of any member."""
    user = user_service.find_user_by_id(db, id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return schemas.UserPublic.model_validate(user)


@router.get("/{id}/posts", response_model=list[schemas.Post])
def list_user_posts(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Post]:
    """A member's live posts, newest first."""
    if not user_service.find_user_by_id(db, id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    posts = post_service.find_posts_by_user_id(db, id)
    post_service.annotate_posts_with_comment_counts(db, posts)
    return [schemas.Post.model_validate(p) for p in posts]
