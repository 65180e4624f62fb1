"""Bucket raw click events by calendar day and by link.

Both functions are pure: they never touch the store and the sum of their
buckets always equals the number of events counted.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta, timezone
from typing import Protocol
from uuid import UUID

from linkbio.schemas.analytics import DailyCount, LinkClickCount

DELETED_LINK_TITLE = "Deleted Link"


class _Event(Protocol):
    link_id: UUID
    timestamp: datetime


class _Link(Protocol):
    id: UUID
    title: str
    url: str


def _utc_date(timestamp: datetime) -> date:
    # Naive timestamps (SQLite drops tzinfo) are already UTC
    if timestamp.tzinfo is None:
        return timestamp.date()
    return timestamp.astimezone(timezone.utc).date()


def bucket_by_day(
    events: Iterable[_Event],
    range_days: int,
    today: date | None = None,
) -> list[DailyCount]:
    """Count events per UTC day over the ``range_days`` days ending today.

    Every day in the window gets an entry, zero when there were no clicks,
    oldest first. Events outside the window are ignored.
    """
    if range_days <= 0:
        return []
    today = today or datetime.now(timezone.utc).date()
    days = [today - timedelta(days=offset) for offset in range(range_days - 1, -1, -1)]
    counts = Counter(_utc_date(event.timestamp) for event in events)
    return [DailyCount(date=day, clicks=counts.get(day, 0)) for day in days]


def bucket_by_link(
    events: Iterable[_Event],
    links: Sequence[_Link],
) -> list[LinkClickCount]:
    """Count events per link.

    Current links come first in their given order, zero counts included.
    Clicks on links that no longer exist follow, one bucket per unknown link
    id in the order those ids were first seen.
    """
    counts: Counter[UUID] = Counter()
    for event in events:
        counts[event.link_id] += 1

    known = {link.id for link in links}
    buckets = [
        LinkClickCount(link_id=link.id, title=link.title, url=link.url, clicks=counts[link.id])
        for link in links
    ]
    # Counter keeps insertion order, which is first-seen order
    buckets.extend(
        LinkClickCount(
            link_id=link_id,
            title=DELETED_LINK_TITLE,
            url="",
            clicks=clicks,
            deleted=True,
        )
        for link_id, clicks in counts.items()
        if link_id not in known
    )
    return buckets
