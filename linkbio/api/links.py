"""Endpoints for the links embedded in a linktree."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Request, status

from linkbio.core.database import AsyncSessionDep
from linkbio.core.deadline import bounded
from linkbio.core.deps import CurrentUser
from linkbio.core.observability import record_linktree_operation
from linkbio.core.rate_limit import RATE_LIMIT_API, limiter
from linkbio.core.redis import CacheDep
from linkbio.schemas.linktree import (
    LinkCreate,
    LinkReorder,
    LinkResponse,
    LinktreeResponse,
    LinkUpdate,
)
from linkbio.services import linktree_service

logger = structlog.get_logger()

router = APIRouter(prefix="/linktrees/{slug}/links", tags=["links"])


@router.post("", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_API)
async def add_link(
    request: Request,
    slug: str,
    data: LinkCreate,
    user: CurrentUser,
    session: AsyncSessionDep,
    cache: CacheDep,
) -> LinkResponse:
    """Add a link; without an explicit order it goes after the existing ones."""
    async with bounded("query"):
        linktree = await linktree_service.get_owned_linktree(session, slug, user.id)
        link = await linktree_service.add_link(session, linktree, data)
        await session.commit()
    await cache.invalidate(slug)

    logger.info("Link added", link_id=str(link.id), slug=slug)
    record_linktree_operation("link_create")
    return LinkResponse.model_validate(link)


@router.put("/reorder", response_model=LinktreeResponse)
@limiter.limit(RATE_LIMIT_API)
async def reorder_links(
    request: Request,
    slug: str,
    data: LinkReorder,
    user: CurrentUser,
    session: AsyncSessionDep,
    cache: CacheDep,
) -> LinktreeResponse:
    async with bounded("query"):
        linktree = await linktree_service.get_owned_linktree(session, slug, user.id)
        linktree = await linktree_service.reorder_links(session, linktree, data.links)
        await session.commit()
    await cache.invalidate(slug)

    record_linktree_operation("link_reorder")
    return LinktreeResponse.model_validate(linktree)


@router.patch("/{link_id}", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_link(
    request: Request,
    slug: str,
    link_id: UUID,
    data: LinkUpdate,
    user: CurrentUser,
    session: AsyncSessionDep,
    cache: CacheDep,
) -> LinkResponse:
    """Update a link's properties. Sending ``icon: null`` removes the icon."""
    async with bounded("query"):
        linktree = await linktree_service.get_owned_linktree(session, slug, user.id)
        link = await linktree_service.update_link(session, linktree, link_id, data)
        await session.commit()
    await cache.invalidate(slug)

    logger.info("Link updated", link_id=str(link_id), slug=slug)
    record_linktree_operation("link_update")
    return LinkResponse.model_validate(link)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMIT_API)
async def delete_link(
    request: Request,
    slug: str,
    link_id: UUID,
    user: CurrentUser,
    session: AsyncSessionDep,
    cache: CacheDep,
) -> None:
    async with bounded("query"):
        linktree = await linktree_service.get_owned_linktree(session, slug, user.id)
        await linktree_service.delete_link(session, linktree, link_id)
        await session.commit()
    await cache.invalidate(slug)

    logger.info("Link deleted", link_id=str(link_id), slug=slug)
    record_linktree_operation("link_delete")
