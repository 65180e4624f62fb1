"""API router - aggregates all endpoints under /api."""

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from linkbio.api.ab_tests import router as ab_tests_router
from linkbio.api.analytics import router as analytics_router
from linkbio.api.auth import router as auth_router
from linkbio.api.links import router as links_router
from linkbio.api.linktrees import router as linktrees_router
from linkbio.api.public import router as public_router
from linkbio.api.users import router as users_router
from linkbio.core.config import get_settings
from linkbio.core.database import DatabaseDep
from linkbio.core.deadline import bounded
from linkbio.core.exceptions import UpstreamTimeoutError

settings = get_settings()
logger = structlog.get_logger()

router = APIRouter(prefix="/api")

# Include sub-routers
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(linktrees_router)
router.include_router(links_router)
router.include_router(public_router)
router.include_router(analytics_router)
router.include_router(ab_tests_router)


@router.get("/health")
async def health_check(database: DatabaseDep) -> JSONResponse:
    """Health check endpoint; reports the database as unavailable with 503."""
    try:
        async with bounded("connect", settings.db_connect_timeout_seconds):
            await database.ping()
    except (SQLAlchemyError, OSError, UpstreamTimeoutError) as e:
        logger.warning("Health check failed", error=str(e))
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "unavailable"},
        )
    return JSONResponse(content={"status": "healthy", "database": "ok"})
