"""Test post CRUD operations and the recent feed."""

from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from community.models import Post


def test_create_post_requires_auth(client):
    """Test that creating a post requires authentication."""
    response = client.post("/posts", json={"content": "Hello"})
    assert response.status_code == 401


def test_create_post_with_valid_data(client, test_user, auth_headers):
    """Test creating a post with valid data."""
    response = client.post(
        "/posts",
        headers=auth_headers(test_user),
        json={"title": "First", "content": "Hello community", "category": "question"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "First"
    assert data["content"] == "Hello community"
    assert data["category"] == "question"
    assert data["is_pinned"] is False
    assert data["user_id"] == str(test_user.id)
    assert data["user"] == {"id": str(test_user.id), "name": "Alice", "image": None}
    assert data["comment_count"] == 0
    assert data["attachments"] == []


def test_create_post_defaults(client, test_user, auth_headers):
    """Category defaults to general and an empty title is stored as no title."""
    response = client.post(
        "/posts",
        headers=auth_headers(test_user),
        json={"title": "", "content": "Untitled"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["title"] is None
    assert data["category"] == "general"


def test_create_post_rejects_empty_content(client, test_user, auth_headers):
    response = client.post(
        "/posts", headers=auth_headers(test_user), json={"content": ""}
    )
    assert response.status_code == 422
    assert "Content is required" in response.text


def test_create_post_rejects_long_title(client, test_user, auth_headers):
    response = client.post(
        "/posts",
        headers=auth_headers(test_user),
        json={"title": "x" * 201, "content": "Body"},
    )
    assert response.status_code == 422
    assert "Title must be less than 200 characters" in response.text


def test_create_post_accepts_boundary_lengths(client, test_user, auth_headers):
    response = client.post(
        "/posts",
        headers=auth_headers(test_user),
        json={"title": "x" * 200, "content": "y" * 10000},
    )
    assert response.status_code == 201


def test_create_post_rejects_long_content(client, test_user, auth_headers):
    response = client.post(
        "/posts",
        headers=auth_headers(test_user),
        json={"content": "y" * 10001},
    )
    assert response.status_code == 422
    assert "Content must be less than 10000 characters" in response.text


def test_create_post_rejects_unknown_category(client, test_user, auth_headers):
    response = client.post(
        "/posts",
        headers=auth_headers(test_user),
        json={"content": "Body", "category": "memes"},
    )
    assert response.status_code == 422


def test_get_post(client, test_user, auth_headers, create_post):
    post = create_post(test_user, title="Hi")

    response = client.get(f"/posts/{post['id']}", headers=auth_headers(test_user))

    assert response.status_code == 200
    assert response.json()["id"] == post["id"]
    assert response.json()["user"]["name"] == "Alice"


def test_get_missing_post(client, test_user, auth_headers):
    response = client.get(f"/posts/{uuid.uuid4()}", headers=auth_headers(test_user))
    assert response.status_code == 404
    assert response.json()["detail"] == "Post not found"


def test_update_own_post(client, test_user, auth_headers, create_post):
    post = create_post(test_user, title="Old", category="question")

    response = client.patch(
        f"/posts/{post['id']}",
        headers=auth_headers(test_user),
        json={"title": "New", "content": "Edited"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "New"
    assert data["content"] == "Edited"
    # Omitted category keeps the current one
    assert data["category"] == "question"
    assert data["updated_at"] is not None


def test_update_clears_title(client, test_user, auth_headers, create_post):
    post = create_post(test_user, title="Old")

    response = client.patch(
        f"/posts/{post['id']}",
        headers=auth_headers(test_user),
        json={"title": "", "content": "Body"},
    )

    assert response.status_code == 200
    assert response.json()["title"] is None


def test_update_someone_elses_post(client, test_user, other_user, auth_headers, create_post):
    post = create_post(test_user)

    response = client.patch(
        f"/posts/{post['id']}",
        headers=auth_headers(other_user),
        json={"content": "Hijacked"},
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Unauthorized: You can only edit your own posts"


def test_delete_own_post(client, db: Session, test_user, auth_headers, create_post):
    """Deleting is a soft delete: the row stays but the post disappears."""
    post = create_post(test_user)
    headers = auth_headers(test_user)

    response = client.delete(f"/posts/{post['id']}", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get(f"/posts/{post['id']}", headers=headers).status_code == 404
    assert client.get("/posts", headers=headers).json()["items"] == []
    assert client.get("/posts/mine", headers=headers).json() == []

    row = db.query(Post).filter(Post.id == uuid.UUID(post["id"])).one()
    assert row.deleted_at is not None


def test_delete_twice_is_not_found(client, test_user, auth_headers, create_post):
    post = create_post(test_user)
    headers = auth_headers(test_user)

    assert client.delete(f"/posts/{post['id']}", headers=headers).status_code == 200
    assert client.delete(f"/posts/{post['id']}", headers=headers).status_code == 404


def test_delete_someone_elses_post(client, test_user, other_user, auth_headers, create_post):
    post = create_post(test_user)

    response = client.delete(f"/posts/{post['id']}", headers=auth_headers(other_user))

    assert response.status_code == 403
    assert response.json()["detail"] == "Unauthorized: You can only delete your own posts"


def test_list_my_posts(client, test_user, other_user, auth_headers, create_post):
    first = create_post(test_user, content="one")
    second = create_post(test_user, content="two")
    create_post(other_user, content="not mine")

    response = client.get("/posts/mine", headers=auth_headers(test_user))

    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [second["id"], first["id"]]


def test_feed_is_newest_first(client, test_user, auth_headers, create_post):
    ids = [create_post(test_user, content=f"post {i}")["id"] for i in range(3)]

    response = client.get("/posts", headers=auth_headers(test_user))

    assert response.status_code == 200
    page = response.json()
    assert [p["id"] for p in page["items"]] == list(reversed(ids))
    assert page["next_cursor"] is None


def test_feed_filters_by_category(client, test_user, auth_headers, create_post):
    create_post(test_user, content="chat")
    question = create_post(test_user, content="how?", category="question")

    response = client.get("/posts?category=question", headers=auth_headers(test_user))

    assert [p["id"] for p in response.json()["items"]] == [question["id"]]


def test_feed_paginates_with_cursor(client, test_user, auth_headers, create_post):
    ids = [create_post(test_user, content=f"post {i}")["id"] for i in range(5)]
    newest_first = list(reversed(ids))
    headers = auth_headers(test_user)

    first = client.get("/posts?limit=2", headers=headers).json()
    assert [p["id"] for p in first["items"]] == newest_first[:2]
    assert first["next_cursor"]

    second = client.get(
        f"/posts?limit=2&cursor={first['next_cursor']}", headers=headers
    ).json()
    assert [p["id"] for p in second["items"]] == newest_first[2:4]

    third = client.get(
        f"/posts?limit=2&cursor={second['next_cursor']}", headers=headers
    ).json()
    assert [p["id"] for p in third["items"]] == newest_first[4:]
    assert third["next_cursor"] is None


def test_feed_ignores_invalid_cursor(client, test_user, auth_headers, create_post):
    post = create_post(test_user)

    response = client.get("/posts?cursor=garbage", headers=auth_headers(test_user))

    assert response.status_code == 200
    assert [p["id"] for p in response.json()["items"]] == [post["id"]]


def test_feed_reports_comment_counts(
    client, test_user, other_user, auth_headers, create_post, create_comment
):
    post = create_post(test_user)
    create_comment(other_user, post["id"])
    create_comment(test_user, post["id"])

    response = client.get("/posts", headers=auth_headers(test_user))

    assert response.json()["items"][0]["comment_count"] == 2


def test_pin_requires_admin(client, test_user, auth_headers, create_post):
    post = create_post(test_user)

    response = client.post(f"/posts/{post['id']}/pin", headers=auth_headers(test_user))

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"


def test_pinned_posts_lead_the_feed(client, test_user, admin_user, auth_headers, create_post):
    older = create_post(test_user, content="older")
    newer = create_post(test_user, content="newer")

    response = client.post(f"/posts/{older['id']}/pin", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json()["is_pinned"] is True

    feed = client.get("/posts", headers=auth_headers(test_user)).json()["items"]
    assert [p["id"] for p in feed] == [older["id"], newer["id"]]


def test_cursor_crosses_from_pinned_to_unpinned(
    client, test_user, admin_user, auth_headers, create_post
):
    ids = [create_post(test_user, content=f"post {i}")["id"] for i in range(3)]
    client.post(f"/posts/{ids[0]}/pin", headers=auth_headers(admin_user))
    headers = auth_headers(test_user)

    first = client.get("/posts?limit=1", headers=headers).json()
    assert [p["id"] for p in first["items"]] == [ids[0]]

    rest = client.get(f"/posts?limit=5&cursor={first['next_cursor']}", headers=headers).json()
    assert [p["id"] for p in rest["items"]] == [ids[2], ids[1]]


def test_unpin_post(client, test_user, admin_user, auth_headers, create_post):
    post = create_post(test_user)
    headers = auth_headers(admin_user)
    client.post(f"/posts/{post['id']}/pin", headers=headers)

    response = client.delete(f"/posts/{post['id']}/pin", headers=headers)

    assert response.status_code == 200
    assert response.json()["is_pinned"] is False
