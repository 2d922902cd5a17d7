from __future__ import annotations

import os

# Settings are read at import time, so configure the environment before
# anything from the community package is imported.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-for-pytest-only-" + "x" * 40)
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("REDIS_URL", None)

from typing import Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from community.auth import create_access_token  # noqa: E402
from community.cache import set_redis_client  # noqa: E402
from community.db import Base  # noqa: E402
from community.deps import get_db  # noqa: E402
from community.main import app  # noqa: E402
from community.models import User  # noqa: E402


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite shared by every session of one test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(test_engine)
        test_engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def client(session_factory: sessionmaker) -> Generator[TestClient, None, None]:
    """API client whose requests use the test database.

    The lifespan is not entered, so no migrations run against it.
    """

    def override_get_db() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture(autouse=True)
def no_redis() -> Generator[None, None, None]:
    """Run every test without a cache unless the test installs one."""
    set_redis_client(None)
    yield
    set_redis_client(None)


@pytest.fixture()
def make_user(db: Session) -> Callable[..., User]:
    def _make_user(email: str, name: str | None = None, **fields) -> User:
        user = User(email=email, name=name, **fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def test_user(make_user) -> User:
    """Create a test user."""
    return make_user("alice@example.com", name="Alice")


@pytest.fixture()
def other_user(make_user) -> User:
    """Create a second user who owns nothing of test_user's."""
    return make_user("bob@example.com", name="Bob")


@pytest.fixture()
def admin_user(make_user, monkeypatch: pytest.MonkeyPatch) -> User:
    """Create a user listed in ADMIN_EMAILS."""
    monkeypatch.setenv("ADMIN_EMAILS", "root@example.com, Admin@Example.com")
    return make_user("admin@example.com", name="Admin")


def _auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Bearer headers for a user."""
    return _auth_headers


@pytest.fixture()
def create_post(client: TestClient) -> Callable[..., dict]:
    """Create a post through the API and return its JSON."""

    def _create_post(user: User, content: str = "Hello community", **fields) -> dict:
        response = client.post(
            "/posts",
            headers=_auth_headers(user),
            json={"content": content, **fields},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create_post


@pytest.fixture()
def create_comment(client: TestClient) -> Callable[..., dict]:
    """Create a comment (or reply) through the API and return its JSON."""

    def _create_comment(
        user: User,
        post_id: str,
        content: str = "Nice post",
        parent_comment_id: str | None = None,
    ) -> dict:
        payload: dict = {"content": content}
        if parent_comment_id:
            payload["parent_comment_id"] = parent_comment_id
        response = client.post(
            f"/posts/{post_id}/comments",
            headers=_auth_headers(user),
            json=payload,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create_comment
