"""System endpoints (health, config)."""

from __future__ import annotations

import time
import logging

from fastapi import APIRouter, HTTPException, status
from redis import RedisError

from .. import schemas
from ..cache import get_redis_client

router = APIRouter(prefix="", tags=["System"])
logger = logging.getLogger(__name__)

# Global startup time for uptime calculation
_STARTUP_TIME = time.time()


@router.get("/health", response_model=schemas.HealthResponse)
def get_health() -> schemas.HealthResponse:
    """Liveness & minimal readiness check."""
    uptime_s = time.time() - _STARTUP_TIME
    return schemas.HealthResponse(status="ok", uptime_s=uptime_s)


@router.get("/config", response_model=schemas.Config)
def get_public_config() -> schemas.Config:
    """Public community limits, so clients can validate before submitting."""
    return schemas.Config()


@router.get("/health/redis")
def check_redis_health() -> dict:
    """
    Redis health check endpoint.

    Returns 200 if the cache is reachable, 503 if it is not configured or down.
    """
    client = get_redis_client()
    if not client:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Redis unavailable",
        )

    try:
        client.ping()
        return {"status": "ok", "message": "Redis is available"}
    except RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Redis error: {e}",
        )
