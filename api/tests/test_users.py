"""Test member profiles and subscription plan resolution."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from community.models import User
from community.services.users import (
    get_user_plan,
    has_valid_plan,
    is_user_admin,
    resolve_user_plan,
)


def test_get_own_profile(client, test_user, auth_headers):
    response = client.get("/users/me", headers=auth_headers(test_user))

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(test_user.id)
    assert data["email"] == "alice@example.com"
    assert data["plan"] == "free"
    assert data["plan_active"] is True
    assert data["is_admin"] is False


def test_admin_flag_is_case_insensitive(client, admin_user, auth_headers):
    response = client.get("/users/me", headers=auth_headers(admin_user))
    assert response.json()["is_admin"] is True


def test_paid_plan_reported(client, make_user, auth_headers):
    user = make_user(
        "pro@example.com",
        plan="pro",
        subscription_status="active",
        subscription_expires_at=datetime.now(timezone.utc) + timedelta(days=30),
    )

    data = client.get("/users/me", headers=auth_headers(user)).json()

    assert data["plan"] == "pro"
    assert data["plan_active"] is True
    assert data["plan_expires_at"] is not None


def test_update_profile(client, test_user, auth_headers):
    response = client.patch(
        "/users/me",
        headers=auth_headers(test_user),
        json={"name": "Alice Liddell", "image": "avatars/alice.png"},
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Alice Liddell"
    assert response.json()["image"] == "avatars/alice.png"


def test_update_profile_clears_image(client, make_user, auth_headers):
    user = make_user("carol@example.com", name="Carol", image="avatars/carol.png")

    response = client.patch("/users/me", headers=auth_headers(user), json={"image": ""})

    assert response.status_code == 200
    assert response.json()["image"] is None
    assert response.json()["name"] == "Carol"


def test_update_profile_rejects_empty_name(client, test_user, auth_headers):
    response = client.patch("/users/me", headers=auth_headers(test_user), json={"name": ""})
    assert response.status_code == 422


def test_public_profile_hides_private_fields(client, test_user, other_user, auth_headers):
    response = client.get(f"/users/{test_user.id}", headers=auth_headers(other_user))

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Alice"
    assert "email" not in data
    assert "plan" not in data


def test_unknown_profile(client, test_user, auth_headers):
    response = client.get(f"/users/{uuid.uuid4()}", headers=auth_headers(test_user))
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


def test_user_posts(client, test_user, other_user, auth_headers, create_post):
    post = create_post(test_user)
    create_post(other_user)

    response = client.get(f"/users/{test_user.id}/posts", headers=auth_headers(other_user))

    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [post["id"]]


def test_resolve_plan_without_user():
    plan = resolve_user_plan(None)
    assert plan.plan == "free"
    assert plan.is_active is False


def test_resolve_plan_expired_subscription():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    user = User(
        email="x@example.com",
        plan="basic",
        subscription_status="active",
        subscription_expires_at=now - timedelta(seconds=1),
    )

    plan = resolve_user_plan(user, now=now)

    assert plan.plan == "basic"
    assert plan.is_active is False


def test_resolve_plan_canceled_subscription():
    user = User(email="x@example.com", plan="pro", subscription_status="canceled")
    assert resolve_user_plan(user).is_active is False


def test_resolve_plan_treats_naive_expiry_as_utc():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    user = User(
        email="x@example.com",
        plan="pro",
        subscription_status="active",
        subscription_expires_at=datetime(2026, 1, 2),
    )
    assert resolve_user_plan(user, now=now).is_active is True


def test_plan_hierarchy():
    user = User(email="x@example.com", plan="basic", subscription_status="active")
    plan = resolve_user_plan(user)

    assert has_valid_plan(plan, "free")
    assert has_valid_plan(plan, "basic")
    assert not has_valid_plan(plan, "pro")


def test_get_user_plan_for_unknown_user(db):
    plan = get_user_plan(db, uuid.uuid4())

    assert plan.plan == "free"
    assert plan.is_active is False
    assert plan.expires_at is None


def test_get_user_plan_loads_subscription(db, make_user):
    user = make_user("basic@example.com", plan="basic", subscription_status="active")

    plan = get_user_plan(db, user.id)

    assert plan.plan == "basic"
    assert plan.is_active is True


def test_is_user_admin(db, admin_user, test_user):
    assert is_user_admin(db, admin_user.id) is True
    assert is_user_admin(db, test_user.id) is False
    assert is_user_admin(db, uuid.uuid4()) is False
