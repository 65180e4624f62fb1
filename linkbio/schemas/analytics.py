"""Pydantic schemas for click analytics."""

import datetime as dt
from uuid import UUID

from pydantic import Field

from linkbio.schemas.base import CamelModel


class AnalyticsEventCreate(CamelModel):
    """Click reported by a visitor. No timestamp: the server assigns it."""

    linktree_id: str = Field(
        min_length=1,
        max_length=100,
        description="Canonical linktree id or its slug",
    )
    link_id: UUID
    referrer: str | None = Field(default=None, max_length=2048)


class AnalyticsEventCreated(CamelModel):
    success: bool = True
    analytics_id: UUID


class AnalyticsEventResponse(CamelModel):
    id: UUID
    linktree_id: UUID
    link_id: UUID
    timestamp: dt.datetime
    ip_address: str | None
    user_agent: str | None
    referrer: str | None
    country: str | None
    city: str | None


class DailyCount(CamelModel):
    """Clicks on a single calendar day (UTC)."""

    date: dt.date
    clicks: int


class LinkClickCount(CamelModel):
    """Clicks attributed to one link, or to a link that no longer exists."""

    link_id: UUID
    title: str
    url: str
    clicks: int
    deleted: bool = False


class AnalyticsSummary(CamelModel):
    """Dashboard aggregates for one linktree over a trailing window."""

    linktree_id: UUID
    slug: str
    days: int
    total_clicks: int
    daily: list[DailyCount]
    links: list[LinkClickCount]
