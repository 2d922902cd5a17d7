"""User lookups, subscription plans and admin membership."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models
from ..settings import SUBSCRIPTION_PLANS, get_admin_emails

# Plan hierarchy: higher plans include everything lower plans can do
PLAN_HIERARCHY = {plan: rank for rank, plan in enumerate(SUBSCRIPTION_PLANS)}


@dataclass(frozen=True)
class UserPlan:
    plan: str
    is_active: bool
    expires_at: datetime | None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def find_user_by_id(db: Session, user_id: UUID) -> models.User | None:
    return db.query(models.User).filter(models.User.id == user_id).first()


def update_user_profile(
    db: Session,
    user: models.User,
    name: str | None = None,
    image: str | None = None,
) -> models.User:
    if name is not None:
        user.name = name
    if image is not None:
        # An empty string clears the avatar
        user.image = image or None
    db.commit()
    db.refresh(user)
    return user


def resolve_user_plan(user: models.User | None, now: datetime | None = None) -> UserPlan:
    """
    Work out a user's effective plan.

    The free plan is always active. Paid plans are active only while the
    subscription status is "active" and the expiry (if any) is in the future.
    """
    if user is None:
        return UserPlan(plan="free", is_active=False, expires_at=None)

    plan = user.plan if user.plan in PLAN_HIERARCHY else "free"
    now = now or datetime.now(timezone.utc)
    expires_at = user.subscription_expires_at

    is_active = plan == "free" or (
        user.subscription_status == "active"
        and (expires_at is None or _as_utc(expires_at) > now)
    )

    return UserPlan(plan=plan, is_active=is_active, expires_at=expires_at)


def get_user_plan(db: Session, user_id: UUID) -> UserPlan:
    return resolve_user_plan(find_user_by_id(db, user_id))


def has_valid_plan(user_plan: UserPlan, required_plan: str) -> bool:
    """Check whether an active plan meets or exceeds the required plan."""
    if not user_plan.is_active:
        return False
    return PLAN_HIERARCHY[user_plan.plan] >= PLAN_HIERARCHY[required_plan]


def is_admin_email(email: str | None) -> bool:
    if not email:
        return False
    return email.strip().lower() in get_admin_emails()


def is_user_admin(db: Session, user_id: UUID) -> bool:
    user = find_user_by_id(db, user_id)
    if not user:
        return False
    return is_admin_email(user.email)
