"""FastAPI application for the Care Compliance Engine."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import compliance_router
from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.queue import reset_queue_cache
from app.core.redis import close_redis, ping_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Initialize database (debug only)
    - Shutdown: Close database and Redis connections, drop cached queues
    """
    # Startup
    if settings.debug:
        await init_db()
    logger.info(f"{settings.app_name} ready")

    yield

    # Shutdown
    reset_queue_cache()
    close_redis()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="API for computing care-home compliance scores, detecting compliance gaps and generating inspection reports.",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],  # Next.js dev server
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(compliance_router)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint (liveness check).

    Returns service status and basic info for monitoring.
    """
    return {
        "status": "healthy",
        "service": "care-compliance-engine",
        "version": "0.1.0",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, Any]:
    """Readiness check endpoint.

    Reports whether the job queue backend is reachable. Scoring itself
    only needs the database, so a missing Redis does not fail readiness.
    """
    return {
        "status": "ready",
        "service": "care-compliance-engine",
        "version": "0.1.0",
        "timestamp": datetime.now(UTC).isoformat(),
        "queue_available": ping_redis(),
    }


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "service": "Care Compliance Engine API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
    }
