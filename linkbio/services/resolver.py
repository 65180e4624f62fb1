"""Public view of a linktree: visibility, link filtering and A/B substitution."""

import random
from uuid import UUID

import structlog
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from linkbio.core.config import get_settings
from linkbio.core.database import Database
from linkbio.core.deadline import bounded, clear_deadline
from linkbio.core.exceptions import ForbiddenError, NotFoundError, UpstreamTimeoutError
from linkbio.core.observability import record_ab_test_event, record_public_view
from linkbio.core.redis import LinktreeCache
from linkbio.core.tasks import TelemetryTasks
from linkbio.models.ab_test import ABTest
from linkbio.schemas.public import LinktreeSnapshot, PublicLink, PublicLinktree, SnapshotLink
from linkbio.services import ab_test as ab_test_service
from linkbio.services import linktree as linktree_service
from linkbio.services import user as user_service

logger = structlog.get_logger()


async def load_snapshot(
    session: AsyncSession,
    cache: LinktreeCache,
    slug: str,
) -> LinktreeSnapshot | None:
    """Read the linktree snapshot from cache, falling back to the store."""
    cached = await cache.get(slug)
    if cached is not None:
        try:
            return LinktreeSnapshot.model_validate(cached)
        except ValidationError:
            logger.warning("Discarding malformed cached linktree", slug=slug)

    linktree = await linktree_service.get_linktree_by_slug(session, slug)
    if linktree is None:
        return None

    owner = await user_service.get_user_by_id(session, linktree.user_id)
    snapshot = linktree_service.build_snapshot(linktree, owner)
    await cache.set(slug, snapshot.model_dump(mode="json"))
    return snapshot


async def _lookup_active_tests(
    session: AsyncSession,
    links: list[SnapshotLink],
) -> dict[UUID, ABTest]:
    try:
        return await ab_test_service.get_active_tests_for_links(
            session, [link.id for link in links]
        )
    except SQLAlchemyError as e:
        # Page still renders with the original links
        logger.warning("Active test lookup failed", error=str(e))
        await session.rollback()
        return {}


async def _record_impression(database: Database, test_id: UUID, variant_id: UUID) -> None:
    # Runs after the page may already be sent; only its own cap applies
    clear_deadline()
    try:
        async with bounded("query", limit=get_settings().telemetry_timeout_seconds):
            async with database.session() as session:
                recorded = await ab_test_service.record_impression(session, test_id, variant_id)
                await session.commit()
    except (SQLAlchemyError, UpstreamTimeoutError) as e:
        record_ab_test_event("impression", "failed")
        logger.warning(
            "Impression write failed",
            test_id=str(test_id),
            variant_id=str(variant_id),
            error=str(e),
        )
        return
    record_ab_test_event("impression", "recorded" if recorded else "rejected")


async def resolve(
    session: AsyncSession,
    database: Database,
    cache: LinktreeCache,
    tasks: TelemetryTasks,
    slug: str,
    viewer_id: UUID | None = None,
    rng: random.Random | None = None,
) -> PublicLinktree:
    """Build the visitor-facing view of a linktree.

    Only enabled links are shown, by ascending ``order`` with ties kept in
    stored order. A link with an active A/B test is shown as one randomly
    chosen variant; its impression is counted in the background through
    ``tasks`` so a slow write never delays the page.

    Raises:
        NotFoundError: no linktree has this slug
        ForbiddenError: the linktree is private and the viewer is not its owner
    """
    snapshot = await load_snapshot(session, cache, slug)
    if snapshot is None:
        record_public_view("not_found")
        raise NotFoundError("Linktree not found")
    if not snapshot.is_public and viewer_id != snapshot.user_id:
        record_public_view("private")
        raise ForbiddenError("This linktree is private")

    visible = sorted((link for link in snapshot.links if link.enabled), key=lambda link: link.order)
    tests = await _lookup_active_tests(session, visible)

    links: list[PublicLink] = []
    for link in visible:
        shown = PublicLink(id=link.id, title=link.title, url=link.url, icon=link.icon)
        test = tests.get(link.id)
        variant = ab_test_service.choose_variant(test.variants, rng) if test else None
        if variant is not None:
            shown.title = variant.title
            shown.url = variant.url
            shown.ab_test_id = test.id
            shown.variant_id = variant.id
            tasks.spawn(
                _record_impression(database, test.id, variant.id),
                name=f"ab-impression-{variant.id}",
            )
        links.append(shown)

    record_public_view("ok")
    return PublicLinktree(
        id=snapshot.id,
        slug=snapshot.slug,
        title=snapshot.title,
        theme=snapshot.theme,
        footer=snapshot.footer,
        owner=snapshot.owner,
        links=links,
    )
