"""Post management endpoints."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, require_admin, require_ownership
from ..cache import cache_get, cache_set, invalidate_posts, post_key, recent_posts_key
from ..deps import get_db
from ..pagination import create_page_response
from ..services import posts as post_service
from ..services.rate_limit import check_rate_limit
from ..settings import COMMUNITY_POST_RATE_LIMIT, COMMUNITY_RECENT_POSTS_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["Posts"])


def get_live_post_or_404(db: Session, post_id: UUID) -> models.Post:
    """Load a post that exists and is not soft-deleted, else 404."""
    post = post_service.find_post_by_id_with_user(db, post_id)
    if not post or post.deleted_at is not None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Post not found"
        )
    return post


def _post_response(db: Session, post: models.Post) -> schemas.Post:
    post_service.annotate_posts_with_comment_counts(db, [post])
    return schemas.Post.model_validate(post)


@router.get("", response_model=schemas.Page[schemas.Post])
def list_recent_posts(
    category: schemas.PostCategory | None = None,
    cursor: str | None = None,
    limit: int = Query(COMMUNITY_RECENT_POSTS_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Page[schemas.Post]:
    """
    Recent community feed.

    Pinned posts come first, then newest first. Soft-deleted posts are never
    listed.
    """
    cache_key = recent_posts_key(category, cursor, limit)
    cached = cache_get(cache_key)
    if cached is not None:
        return schemas.Page[schemas.Post].model_validate(cached)

    posts = post_service.find_recent_posts(db, limit, category=category, cursor=cursor)
    page_data = create_page_response(posts, limit)
    post_service.annotate_posts_with_comment_counts(db, page_data["items"])

    page = schemas.Page[schemas.Post](
        items=[schemas.Post.model_validate(p) for p in page_data["items"]],
        next_cursor=page_data["next_cursor"],
    )
    cache_set(cache_key, page.model_dump(mode="json"))
    return page


@router.post(
    "",
    response_model=schemas.Post,
    status_code=status.HTTP_201_CREATED,
)
def create_post(
    payload: schemas.PostCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    """
    Create a new post owned by the current user.
    """
    allowed, _remaining = check_rate_limit(
        f"ratelimit:post:{current_user.id}", COMMUNITY_POST_RATE_LIMIT
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many posts, slow down",
        )

    post = post_service.create_post(
        db,
        user_id=current_user.id,
        title=payload.title,
        content=payload.content,
        category=payload.category,
    )
    logger.info(f"User {current_user.id} created post {post.id}")

    # Invalidate feed caches since a new post was created
    invalidate_posts()

    return schemas.Post.model_validate(post)


@router.get("/mine", response_model=list[schemas.Post])
def list_my_posts(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Post]:
    """List the current user's posts, newest first."""
    posts = post_service.find_posts_by_user_id(db, current_user.id)
    post_service.annotate_posts_with_comment_counts(db, posts)
    return [schemas.Post.model_validate(p) for p in posts]


@router.get("/{id}", response_model=schemas.Post)
def get_post(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    """
    Get a post with its author.

    Soft-deleted posts are reported as not found.
    """
    cached = cache_get(post_key(id))
    if cached is not None:
        return schemas.Post.model_validate(cached)

    result = _post_response(db, get_live_post_or_404(db, id))
    cache_set(post_key(id), result.model_dump(mode="json"))
    return result


@router.patch("/{id}", response_model=schemas.Post)
def update_post(
    id: UUID,
    payload: schemas.PostUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    """
    Update title, content and category of an own post.
    """
    post = get_live_post_or_404(db, id)
    require_ownership(
        post.user_id,
        current_user,
        detail="Unauthorized: You can only edit your own posts",
    )

    post = post_service.update_post(
        db,
        post,
        title=payload.title,
        content=payload.content,
        category=payload.category,
    )
    logger.info(f"User {current_user.id} updated post {post.id}")

    invalidate_posts(post.id)

    return _post_response(db, post)


@router.delete("/{id}", response_model=schemas.SuccessResponse)
def delete_post(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.SuccessResponse:
    """
    Delete an own post (soft delete).
    """
    post = get_live_post_or_404(db, id)
    require_ownership(
        post.user_id,
        current_user,
        detail="Unauthorized: You can only delete your own posts",
    )

    if not post_service.delete_post(db, post):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete post",
        )
    logger.info(f"User {current_user.id} deleted post {id}")

    invalidate_posts(id)

    return schemas.SuccessResponse()


@router.post("/{id}/pin", response_model=schemas.Post, tags=["Posts", "Admin"])
def pin_post(
    id: UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Post:
    """Pin a post to the top of the feed (admin only)."""
    post = get_live_post_or_404(db, id)
    post = post_service.set_post_pinned(db, post, True)
    logger.info(f"Admin {admin.id} pinned post {id}")

    invalidate_posts(id)

    return _post_response(db, post)


@router.delete("/{id}/pin", response_model=schemas.Post, tags=["Posts", "Admin"])
def unpin_post(
    id: UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Post:
    """Unpin a post (admin only)."""
    post = get_live_post_or_404(db, id)
    post = post_service.set_post_pinned(db, post, False)
    logger.info(f"Admin {admin.id} unpinned post {id}")

    invalidate_posts(id)

    return _post_response(db, post)
