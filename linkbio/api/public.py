"""Anonymous page-view endpoint."""

import structlog
from fastapi import APIRouter, Request

from linkbio.core.database import AsyncSessionDep, DatabaseDep
from linkbio.core.deadline import bounded
from linkbio.core.deps import CurrentUserOptional
from linkbio.core.rate_limit import RATE_LIMIT_PUBLIC, limiter
from linkbio.core.redis import CacheDep
from linkbio.core.tasks import TelemetryTasksDep
from linkbio.schemas.public import PublicLinktree
from linkbio.services import resolver_service

logger = structlog.get_logger()

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/linktrees/{slug}", response_model=PublicLinktree)
@limiter.limit(RATE_LIMIT_PUBLIC)
async def get_public_linktree(
    request: Request,
    slug: str,
    viewer: CurrentUserOptional,
    session: AsyncSessionDep,
    database: DatabaseDep,
    cache: CacheDep,
    tasks: TelemetryTasksDep,
) -> PublicLinktree:
    """Render a linktree for a visitor.

    Flow:
    1. Load the linktree snapshot (Redis cache, then database)
    2. Refuse private linktrees unless the viewer owns them
    3. Keep enabled links, sorted by their order
    4. Swap in an A/B variant where a test is active and count the impression in the background
    """
    async with bounded("query"):
        page = await resolver_service.resolve(
            session,
            database,
            cache,
            tasks,
            slug,
            viewer_id=viewer.id if viewer else None,
        )

    logger.debug("Public linktree served", slug=slug, links=len(page.links))
    return page
