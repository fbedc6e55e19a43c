"""
Notegraph — Application Entry Point

FastAPI application for auto-tagged notes, tag relationship discovery
and semantic note search.

Start locally:
    uvicorn notegraph.main:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from notegraph.api.v1.notes import router as notes_router
from notegraph.api.v1.tags import router as tags_router
from notegraph.core.config import settings
from notegraph.core.database import create_tables, dispose_engine, get_engine
from notegraph.core.logging import setup_logging

# Initialize logging before any log statements
setup_logging()
logger = logging.getLogger(__name__)


async def check_database() -> None:
    """
    Verify database connectivity and create missing tables.

    Raises:
        Exception: Whatever the driver raises when Postgres is unreachable;
            startup must fail in that case.
    """
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connection verified")
    await create_tables()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Validates database connectivity (blocks startup on failure)
        - Creates missing tables

    Shutdown:
        - Disposes the database engine
    """
    logger.info("Starting %s...", settings.PROJECT_NAME)
    logger.info("Log Level: %s", settings.LOG_LEVEL)
    if settings.embeddings_mocked:
        logger.warning("Embeddings run in mock mode (no OpenAI API key)")

    try:
        await check_database()
    except Exception:
        logger.critical("Could not connect to Postgres. Shutting down.", exc_info=True)
        raise

    yield

    await dispose_engine()
    logger.info("%s shutdown complete", settings.PROJECT_NAME)


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Auto-tagged notes with embedding-based tag relationships and search.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(notes_router, prefix="/api/v1/notes", tags=["Notes"])
app.include_router(tags_router, prefix="/api/v1/tags", tags=["Tags"])


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check for load balancers and orchestrators."""
    return {
        "status": "ok",
        "service": "notegraph",
        "environment": os.getenv("ENVIRONMENT", "local"),
        "embeddings": "mock" if settings.embeddings_mocked else settings.EMBEDDING_PROVIDER,
    }
