"""Click analytics: ingestion of raw events and owner-scoped queries."""

from collections.abc import Sequence
from datetime import datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from linkbio.core.database import utcnow
from linkbio.core.exceptions import NotFoundError
from linkbio.models.analytics import AnalyticsEvent
from linkbio.models.linktree import Linktree
from linkbio.schemas.analytics import AnalyticsEventCreate

logger = structlog.get_logger()

# No geolocation backend is wired in; every event is stored with this location
UNKNOWN_LOCATION = "Unknown"


async def resolve_linktree_ref(session: AsyncSession, ref: str) -> Linktree | None:
    """Find a linktree by canonical id, falling back to its slug."""
    try:
        linktree_id = UUID(ref)
    except ValueError:
        linktree_id = None

    if linktree_id is not None:
        result = await session.execute(select(Linktree).where(Linktree.id == linktree_id))
        linktree = result.scalar_one_or_none()
        if linktree is not None:
            return linktree

    result = await session.execute(select(Linktree).where(Linktree.slug == ref))
    return result.scalar_one_or_none()


async def ingest_event(
    session: AsyncSession,
    data: AnalyticsEventCreate,
    ip_address: str,
    user_agent: str | None,
) -> AnalyticsEvent:
    """Store one click, keyed by the canonical linktree id.

    The timestamp is always assigned here; clients cannot backdate events.

    Raises:
        NotFoundError: the linktree reference matches neither an id nor a slug
    """
    linktree = await resolve_linktree_ref(session, data.linktree_id)
    if linktree is None:
        raise NotFoundError("Linktree not found")

    event = AnalyticsEvent(
        linktree_id=linktree.id,
        link_id=data.link_id,
        timestamp=utcnow(),
        ip_address=ip_address,
        user_agent=user_agent,
        referrer=data.referrer,
        country=UNKNOWN_LOCATION,
        city=UNKNOWN_LOCATION,
    )
    session.add(event)
    await session.flush()

    logger.debug(
        "Analytics event stored",
        linktree_id=str(linktree.id),
        link_id=str(data.link_id),
    )
    return event


def _filter_events(
    linktree_ids: Sequence[UUID],
    start: datetime | None,
    end: datetime | None,
):
    conditions = [AnalyticsEvent.linktree_id.in_(linktree_ids)]
    if start is not None:
        conditions.append(AnalyticsEvent.timestamp >= start)
        conditions.append(AnalyticsEvent.timestamp <= (end or utcnow()))
    elif end is not None:
        conditions.append(AnalyticsEvent.timestamp <= end)
    return conditions


async def query_events(
    session: AsyncSession,
    linktree_ids: Sequence[UUID],
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    limit: int = 100,
) -> tuple[list[AnalyticsEvent], int]:
    """Page through events of the given linktrees, newest first.

    When only ``start`` is given the window ends now.

    Returns:
        Tuple of (events on the requested page, total matching events)
    """
    if not linktree_ids:
        return [], 0

    conditions = _filter_events(linktree_ids, start, end)

    total_result = await session.execute(
        select(func.count()).select_from(AnalyticsEvent).where(*conditions)
    )
    total = total_result.scalar_one()

    result = await session.execute(
        select(AnalyticsEvent)
        .where(*conditions)
        .order_by(AnalyticsEvent.timestamp.desc(), AnalyticsEvent.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def load_events_since(
    session: AsyncSession,
    linktree_id: UUID,
    days: int,
    today: datetime | None = None,
) -> list[AnalyticsEvent]:
    """Events of one linktree from the start of the window's first day (UTC)."""
    now = today or utcnow()
    first_day = (now - timedelta(days=days - 1)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    result = await session.execute(
        select(AnalyticsEvent)
        .where(
            AnalyticsEvent.linktree_id == linktree_id,
            AnalyticsEvent.timestamp >= first_day,
        )
        .order_by(AnalyticsEvent.timestamp.asc())
    )
    return list(result.scalars().all())
