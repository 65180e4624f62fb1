"""Click analytics endpoints: anonymous ingestion and owner dashboards."""

import asyncio
import math
from datetime import datetime
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, Query, Request, Response, status
from sqlalchemy.exc import SQLAlchemyError

from linkbio.aggregators import bucket_by_day, bucket_by_link
from linkbio.core.database import AsyncSessionDep, Database, DatabaseDep
from linkbio.core.deadline import bounded
from linkbio.core.deps import CurrentUser
from linkbio.core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    LinkbioError,
    NotFoundError,
)
from linkbio.core.observability import record_analytics_event
from linkbio.core.rate_limit import RATE_LIMIT_API, RATE_LIMIT_TRACK, get_client_ip, limiter
from linkbio.core.tasks import TelemetryTasksDep
from linkbio.models.analytics import AnalyticsEvent
from linkbio.schemas.analytics import (
    AnalyticsEventCreate,
    AnalyticsEventCreated,
    AnalyticsEventResponse,
    AnalyticsSummary,
)
from linkbio.services import analytics_service, linktree_service

logger = structlog.get_logger()

router = APIRouter(tags=["analytics"])

UNKNOWN_IP = "unknown"
SUMMARY_WINDOWS = (7, 30, 90)


async def _store_event(
    database: Database,
    data: AnalyticsEventCreate,
    ip_address: str,
    user_agent: str | None,
) -> AnalyticsEvent:
    async with database.session() as session:
        try:
            event = await analytics_service.ingest_event(session, data, ip_address, user_agent)
            await session.commit()
        except NotFoundError:
            record_analytics_event("not_found")
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            record_analytics_event("failed")
            logger.error(
                "Failed to store analytics event",
                linktree_ref=data.linktree_id,
                link_id=str(data.link_id),
                error=str(e),
            )
            raise LinkbioError("Failed to record analytics event") from e
    record_analytics_event("stored")
    return event


@router.post(
    "/analytics",
    response_model=AnalyticsEventCreated,
    status_code=status.HTTP_201_CREATED,
)
@router.post(
    "/public/analytics",
    response_model=AnalyticsEventCreated,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(RATE_LIMIT_TRACK)
async def ingest_event(
    request: Request,
    data: AnalyticsEventCreate,
    database: DatabaseDep,
    tasks: TelemetryTasksDep,
) -> AnalyticsEventCreated:
    """Record a visitor's click.

    ``linktreeId`` may be the linktree's id or its slug. The write is
    shielded: a client that disconnects, or a request deadline that expires,
    does not cancel it, and its outcome is still logged once nobody awaits it.
    """
    ip_address = get_client_ip(request) or UNKNOWN_IP
    user_agent = request.headers.get("User-Agent")

    async with bounded("query"):
        write = tasks.spawn(
            _store_event(database, data, ip_address, user_agent),
            name="analytics-ingest",
        )
        event = await asyncio.shield(write)

    return AnalyticsEventCreated(analytics_id=event.id)


@router.get("/analytics", response_model=list[AnalyticsEventResponse])
@limiter.limit(RATE_LIMIT_API)
async def list_events(
    request: Request,
    response: Response,
    user: CurrentUser,
    session: AsyncSessionDep,
    linktree_id: Annotated[str | None, Query(alias="linktreeId")] = None,
    start_date: Annotated[datetime | None, Query(alias="startDate")] = None,
    end_date: Annotated[datetime | None, Query(alias="endDate")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> list[AnalyticsEventResponse]:
    """List raw click events, newest first.

    Without ``linktreeId`` every linktree of the user is included.
    Pagination metadata is returned in the X-Total-Count, X-Page, X-Limit
    and X-Total-Pages headers.
    """
    async with bounded("query"):
        if linktree_id is None:
            linktree_ids: list[UUID] = await linktree_service.get_user_linktree_ids(
                session, user.id
            )
        else:
            linktree = await analytics_service.resolve_linktree_ref(session, linktree_id)
            if linktree is None:
                raise NotFoundError("Linktree not found")
            if linktree.user_id != user.id:
                raise ForbiddenError("You do not own this linktree")
            linktree_ids = [linktree.id]

        events, total = await analytics_service.query_events(
            session,
            linktree_ids,
            start=start_date,
            end=end_date,
            page=page,
            limit=limit,
        )

    response.headers["X-Total-Count"] = str(total)
    response.headers["X-Page"] = str(page)
    response.headers["X-Limit"] = str(limit)
    response.headers["X-Total-Pages"] = str(math.ceil(total / limit))
    return [AnalyticsEventResponse.model_validate(event) for event in events]


@router.get("/analytics/{slug}/summary", response_model=AnalyticsSummary)
@limiter.limit(RATE_LIMIT_API)
async def get_summary(
    request: Request,
    slug: str,
    user: CurrentUser,
    session: AsyncSessionDep,
    days: Annotated[int, Query()] = 7,
) -> AnalyticsSummary:
    """Clicks per day and per link over the last ``days`` days (UTC)."""
    if days not in SUMMARY_WINDOWS:
        raise InvalidInputError(f"days must be one of {', '.join(map(str, SUMMARY_WINDOWS))}")

    async with bounded("query"):
        linktree = await linktree_service.get_owned_linktree(session, slug, user.id)
        events = await analytics_service.load_events_since(session, linktree.id, days)

    links = sorted(linktree.links, key=lambda link: link.order)
    summary = AnalyticsSummary(
        linktree_id=linktree.id,
        slug=linktree.slug,
        days=days,
        total_clicks=len(events),
        daily=bucket_by_day(events, days),
        links=bucket_by_link(events, links),
    )
    logger.debug("Summary fetched", slug=slug, total_clicks=summary.total_clicks)
    return summary
