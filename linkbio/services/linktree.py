"""Linktree directory: ownership, slugs, defaults and the embedded links."""

from collections.abc import Sequence
from uuid import UUID

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from linkbio.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from linkbio.models.analytics import AnalyticsEvent
from linkbio.models.linktree import Link, Linktree
from linkbio.models.user import User
from linkbio.schemas.linktree import (
    LinkCreate,
    LinkOrder,
    LinktreeCreate,
    LinktreeUpdate,
    LinkUpdate,
)
from linkbio.schemas.public import LinktreeSnapshot, OwnerProfile, SnapshotLink

logger = structlog.get_logger()

SLUG_TAKEN = "This URL slug is already taken."
DEFAULT_THEME = "light"


async def get_linktree_by_slug(session: AsyncSession, slug: str) -> Linktree | None:
    """Get a linktree (with its links) by slug."""
    result = await session.execute(select(Linktree).where(Linktree.slug == slug))
    return result.scalar_one_or_none()


async def get_owned_linktree(
    session: AsyncSession,
    slug: str,
    user_id: UUID,
) -> Linktree:
    """Get a linktree the caller owns.

    Raises:
        NotFoundError: no linktree has this slug
        ForbiddenError: it belongs to someone else
    """
    linktree = await get_linktree_by_slug(session, slug)
    if linktree is None:
        raise NotFoundError("Linktree not found")
    if linktree.user_id != user_id:
        raise ForbiddenError("You do not own this linktree")
    return linktree


async def get_user_linktrees(session: AsyncSession, user_id: UUID) -> list[Linktree]:
    """All linktrees of a user, newest first."""
    result = await session.execute(
        select(Linktree)
        .where(Linktree.user_id == user_id)
        .order_by(Linktree.created_at.desc())
    )
    return list(result.scalars().all())


async def get_user_linktree_ids(session: AsyncSession, user_id: UUID) -> list[UUID]:
    result = await session.execute(select(Linktree.id).where(Linktree.user_id == user_id))
    return list(result.scalars().all())


async def is_slug_available(session: AsyncSession, slug: str) -> bool:
    """Check if a slug is free. Advisory only: the unique index decides."""
    result = await session.execute(select(Linktree.id).where(Linktree.slug == slug))
    return result.scalar_one_or_none() is None


async def _unset_other_defaults(
    session: AsyncSession,
    user_id: UUID,
    keep_id: UUID | None = None,
) -> None:
    query = update(Linktree).where(
        Linktree.user_id == user_id,
        Linktree.is_default.is_(True),
    )
    if keep_id is not None:
        query = query.where(Linktree.id != keep_id)
    await session.execute(query.values(is_default=False))


async def _flush_or_conflict(session: AsyncSession) -> None:
    # Two creators can both pass the availability check; the loser lands here.
    try:
        await session.flush()
    except IntegrityError as e:
        raise ConflictError(SLUG_TAKEN) from e


async def create_linktree(
    session: AsyncSession,
    user_id: UUID,
    data: LinktreeCreate,
) -> Linktree:
    """Create a linktree, demoting the owner's previous default if needed."""
    if not await is_slug_available(session, data.slug):
        raise ConflictError(SLUG_TAKEN)

    if data.is_default:
        await _unset_other_defaults(session, user_id)

    linktree = Linktree(
        user_id=user_id,
        title=data.title,
        slug=data.slug,
        theme=data.theme or DEFAULT_THEME,
        is_default=data.is_default,
        is_public=data.is_public,
        footer=data.footer or "",
        links=[],
    )
    session.add(linktree)
    await _flush_or_conflict(session)
    return linktree


async def update_linktree(
    session: AsyncSession,
    linktree: Linktree,
    data: LinktreeUpdate,
) -> Linktree:
    """Apply a partial update; a new slug is re-checked like on create."""
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None
    }
    new_slug = changes.get("slug")
    if new_slug and new_slug != linktree.slug and not await is_slug_available(session, new_slug):
        raise ConflictError(SLUG_TAKEN)

    if changes.get("is_default"):
        await _unset_other_defaults(session, linktree.user_id, keep_id=linktree.id)

    for field, value in changes.items():
        setattr(linktree, field, value)
    await _flush_or_conflict(session)
    return linktree


async def delete_linktree(session: AsyncSession, linktree: Linktree) -> int:
    """Delete a linktree, its links and every analytics event about it.

    Returns:
        Number of analytics events removed
    """
    result = await session.execute(
        delete(AnalyticsEvent).where(AnalyticsEvent.linktree_id == linktree.id)
    )
    await session.delete(linktree)
    await session.flush()
    return result.rowcount or 0


async def add_link(session: AsyncSession, linktree: Linktree, data: LinkCreate) -> Link:
    """Append a link; ``order`` defaults to the current number of links."""
    link = Link(
        title=data.title,
        url=data.url,
        icon=data.icon,
        enabled=data.enabled,
        order=data.order if data.order is not None else len(linktree.links),
        position=max((existing.position for existing in linktree.links), default=-1) + 1,
    )
    linktree.links.append(link)
    await session.flush()
    return link


def _get_owned_link(linktree: Linktree, link_id: UUID) -> Link:
    link = linktree.get_link(link_id)
    if link is None:
        raise NotFoundError("Link not found")
    return link


async def update_link(
    session: AsyncSession,
    linktree: Linktree,
    link_id: UUID,
    data: LinkUpdate,
) -> Link:
    """Apply a partial update to one link. ``icon`` may be cleared with null."""
    link = _get_owned_link(linktree, link_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field != "icon":
            continue
        setattr(link, field, value)
    await session.flush()
    return link


async def delete_link(session: AsyncSession, linktree: Linktree, link_id: UUID) -> None:
    """Remove a link. A/B tests and analytics that reference it are kept."""
    link = _get_owned_link(linktree, link_id)
    linktree.links.remove(link)
    await session.flush()


async def reorder_links(
    session: AsyncSession,
    linktree: Linktree,
    items: Sequence[LinkOrder],
) -> Linktree:
    """Set new ``order`` values; ids not present in the linktree are ignored."""
    for item in items:
        link = linktree.get_link(item.id)
        if link is not None:
            link.order = item.order
        else:
            logger.debug("Reorder skipped unknown link", link_id=str(item.id))
    await session.flush()
    return linktree


def build_snapshot(linktree: Linktree, owner: User | None = None) -> LinktreeSnapshot:
    """Freeze a linktree and its owner's public profile for the resolver."""
    return LinktreeSnapshot(
        id=linktree.id,
        user_id=linktree.user_id,
        slug=linktree.slug,
        title=linktree.title,
        theme=linktree.theme,
        footer=linktree.footer,
        is_public=linktree.is_public,
        links=[SnapshotLink.model_validate(link) for link in linktree.links],
        owner=(
            OwnerProfile(name=owner.name, avatar_url=owner.avatar_url)
            if owner is not None
            else OwnerProfile()
        ),
    )
