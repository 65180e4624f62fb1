"""AnalyticsEvent SQLAlchemy model for raw click events."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from linkbio.core.database import Base, utcnow


class AnalyticsEvent(Base):
    """A single recorded click on a link of a linktree.

    Rows are immutable; they disappear only when their linktree is deleted.
    """

    __tablename__ = "analytics_events"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    linktree_id: Mapped[UUID] = mapped_column(
        nullable=False,
        comment="Canonical linktree id (slugs are resolved before storage)",
    )
    link_id: Mapped[UUID] = mapped_column(
        nullable=False,
        comment="Clicked link; may no longer exist in the linktree",
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        comment="Server-assigned ingestion time",
    )
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    referrer: Mapped[str | None] = mapped_column(Text, nullable=True)
    country: Mapped[str | None] = mapped_column(String(64), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_analytics_events_linktree_id_timestamp", "linktree_id", "timestamp"),
        Index("ix_analytics_events_link_id_timestamp", "link_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AnalyticsEvent {self.id} link={self.link_id} at={self.timestamp}>"
