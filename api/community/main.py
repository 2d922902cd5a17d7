from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .cache import get_redis_client, set_redis_client
from .middleware import SecurityHeadersMiddleware
from .routers import attachments, comments, posts, system, users
from .settings import get_cors_origins

load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

_STARTUP_COMPLETE = False


def run_migrations() -> None:
    logger.info("run_migrations: Starting...")
    try:
        alembic_cfg = _alembic_config()

        from .db import engine

        try:
            with engine.connect() as connection:
                context = MigrationContext.configure(connection)
                current_heads = context.get_current_heads()
                script = ScriptDirectory.from_config(alembic_cfg)
                heads = script.get_heads()

                if current_heads and set(current_heads) == set(heads):
                    logger.info(
                        f"Database is up to date (revision: {current_heads[0]}), skipping migrations."
                    )
                    return

                logger.info(
                    f"Current revision(s): {current_heads}, Target revision(s): {heads}. Running migrations..."
                )
        finally:
            # Release pooled connections before Alembic opens its own
            engine.dispose()

        command.upgrade(alembic_cfg, "heads")
        logger.info("run_migrations: Completed successfully.")
    except Exception as e:
        logger.error(f"run_migrations: Error occurred: {e}", exc_info=True)
        raise


def _alembic_config() -> Config:
    base_dir = Path(__file__).resolve().parent.parent
    cfg = Config(str(base_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(base_dir / "alembic"))
    return cfg


def run_startup_tasks() -> None:
    global _STARTUP_COMPLETE
    if _STARTUP_COMPLETE:
        logger.info("run_startup_tasks: Already completed, skipping.")
        return
    try:
        if os.getenv("RUN_MIGRATIONS", "true").lower() in ("1", "true", "yes"):
            run_migrations()
        else:
            logger.info("run_startup_tasks: RUN_MIGRATIONS disabled, skipping migrations.")
        # Connect eagerly so a misconfigured cache shows up in startup logs
        get_redis_client()
        _STARTUP_COMPLETE = True
        logger.info("Startup tasks completed.")
    except Exception as e:
        logger.error(f"Startup tasks failed: {e}", exc_info=True)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    run_startup_tasks()
    logger.info("Community API server ready")
    yield
    logger.info("Shutting down application...")
    client = get_redis_client()
    if client is not None:
        client.close()
    set_redis_client(None)


app = FastAPI(
    title="Community API",
    version="1.0.0",
    description="Discussion board: posts, threaded comments, media attachments and member profiles",
    lifespan=lifespan,
)

cors_origins = get_cors_origins()
if cors_origins == ["*"]:
    logger.warning(
        "CORS is configured to allow all origins. "
        "This is insecure for production. Set CORS_ORIGINS to specific domains."
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    max_age=600,
)

app.add_middleware(SecurityHeadersMiddleware)

app.include_router(system.router)
app.include_router(users.router)
app.include_router(posts.router)
app.include_router(comments.router)
app.include_router(attachments.router)
