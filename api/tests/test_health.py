from __future__ import annotations


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["uptime_s"] >= 0


def test_public_config(client):
    """Clients read form limits from /config."""
    response = client.get("/config")
    assert response.status_code == 200
    body = response.json()
    assert body["max_title_length"] == 200
    assert body["max_post_content_length"] == 10000
    assert body["max_comment_length"] == 5000
    assert body["max_comment_depth"] == 1
    assert "general" in body["post_categories"]
    assert "announcement" in body["post_categories"]


def test_redis_health_without_cache(client):
    """Without REDIS_URL the cache reports itself unavailable."""
    response = client.get("/health/redis")
    assert response.status_code == 503
    assert response.json()["detail"] == "Redis unavailable"


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
