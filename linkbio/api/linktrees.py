"""Linktree CRUD endpoints, scoped to the signed-in owner."""

import structlog
from fastapi import APIRouter, Request, status

from linkbio.core.database import AsyncSessionDep
from linkbio.core.deadline import bounded
from linkbio.core.deps import CurrentUser
from linkbio.core.observability import record_linktree_operation
from linkbio.core.rate_limit import RATE_LIMIT_API, RATE_LIMIT_CREATE, limiter
from linkbio.core.redis import CacheDep
from linkbio.schemas.linktree import (
    LinktreeCreate,
    LinktreeResponse,
    LinktreeSummary,
    LinktreeUpdate,
)
from linkbio.services import linktree_service

logger = structlog.get_logger()

router = APIRouter(prefix="/linktrees", tags=["linktrees"])


@router.get("", response_model=list[LinktreeSummary])
@limiter.limit(RATE_LIMIT_API)
async def list_linktrees(
    request: Request,
    user: CurrentUser,
    session: AsyncSessionDep,
) -> list[LinktreeSummary]:
    """List the current user's linktrees, newest first."""
    async with bounded("query"):
        linktrees = await linktree_service.get_user_linktrees(session, user.id)
    return [LinktreeSummary.model_validate(linktree) for linktree in linktrees]


@router.post("", response_model=LinktreeResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_CREATE)
async def create_linktree(
    request: Request,
    data: LinktreeCreate,
    user: CurrentUser,
    session: AsyncSessionDep,
) -> LinktreeResponse:
    """Create a linktree.

    Marking it as default clears the flag on the user's other linktrees.
    A taken slug is rejected with 400.
    """
    async with bounded("query"):
        linktree = await linktree_service.create_linktree(session, user.id, data)
        await session.commit()

    logger.info(
        "Linktree created",
        linktree_id=str(linktree.id),
        slug=linktree.slug,
        user_id=str(user.id),
    )
    record_linktree_operation("create")
    return LinktreeResponse.model_validate(linktree)


@router.get("/{slug}", response_model=LinktreeResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_linktree(
    request: Request,
    slug: str,
    user: CurrentUser,
    session: AsyncSessionDep,
) -> LinktreeResponse:
    """Get one of the user's linktrees with all its links, enabled or not."""
    async with bounded("query"):
        linktree = await linktree_service.get_owned_linktree(session, slug, user.id)
    return LinktreeResponse.model_validate(linktree)


@router.patch("/{slug}", response_model=LinktreeResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_linktree(
    request: Request,
    slug: str,
    data: LinktreeUpdate,
    user: CurrentUser,
    session: AsyncSessionDep,
    cache: CacheDep,
) -> LinktreeResponse:
    async with bounded("query"):
        linktree = await linktree_service.get_owned_linktree(session, slug, user.id)
        linktree = await linktree_service.update_linktree(session, linktree, data)
        await session.commit()

    # The old slug may still be cached after a rename
    await cache.invalidate(slug, linktree.slug)

    logger.info("Linktree updated", linktree_id=str(linktree.id), slug=linktree.slug)
    record_linktree_operation("update")
    return LinktreeResponse.model_validate(linktree)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMIT_API)
async def delete_linktree(
    request: Request,
    slug: str,
    user: CurrentUser,
    session: AsyncSessionDep,
    cache: CacheDep,
) -> None:
    """Delete a linktree together with its links and click analytics."""
    async with bounded("query"):
        linktree = await linktree_service.get_owned_linktree(session, slug, user.id)
        removed_events = await linktree_service.delete_linktree(session, linktree)
        await session.commit()

    await cache.invalidate(slug)

    logger.info(
        "Linktree deleted",
        linktree_id=str(linktree.id),
        slug=slug,
        analytics_removed=removed_events,
    )
    record_linktree_operation("delete")
