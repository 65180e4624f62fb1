"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from linkbio.api.router import router as api_router
from linkbio.core.config import get_settings
from linkbio.core.database import Database
from linkbio.core.exceptions import register_exception_handlers
from linkbio.core.middleware import RequestDeadlineMiddleware, SecurityHeadersMiddleware
from linkbio.core.observability import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    setup_observability,
)
from linkbio.core.rate_limit import limiter
from linkbio.core.redis import LinktreeCache
from linkbio.core.tasks import TelemetryTasks

settings = get_settings()

# Get logger (will be configured by setup_observability)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the database pool, snapshot cache and telemetry tracker; tear down in reverse."""
    logger.info("Starting Linkbio API", version=settings.app_version)
    app.state.database = Database.from_settings(settings)
    app.state.cache = LinktreeCache.from_settings(settings)
    app.state.telemetry = TelemetryTasks()
    yield
    logger.info("Shutting down Linkbio API")
    await app.state.telemetry.drain(settings.telemetry_timeout_seconds)
    await app.state.cache.close()
    await app.state.database.dispose()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Link-in-bio pages with A/B tests and click analytics",
    lifespan=lifespan,
)

# Set up observability (logging, tracing, metrics, Sentry)
setup_observability(app)
register_exception_handlers(app)

# Rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Middleware stack (first added = innermost; the last one added sees the request first)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

# Per-request deadline for every database phase
app.add_middleware(RequestDeadlineMiddleware, timeout=settings.request_timeout_seconds)

app.add_middleware(
    SecurityHeadersMiddleware,
    enable_hsts=not settings.debug,
)

# Session middleware (required for OAuth state storage)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie="linkbio_session",
    max_age=3600,  # 1 hour for OAuth flow
    same_site="lax",
    https_only=settings.cookie_secure,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=[
        "X-Request-ID",
        "X-Total-Count",
        "X-Page",
        "X-Limit",
        "X-Total-Pages",
    ],
)

app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Welcome to Linkbio API", "version": settings.app_version}
