"""A/B test and Variant SQLAlchemy models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from linkbio.core.database import Base, TimestampMixin, utcnow


class ABTestStatus(StrEnum):
    """Test lifecycle flag. Transitions are manual and unconstrained."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class ABTest(TimestampMixin, Base):
    """An A/B test over the title/url of a single link.

    ``linktree_id`` and ``link_id`` are plain references, not foreign keys:
    the link may be deleted while the test (and its counters) survive.
    """

    __tablename__ = "ab_tests"
    __table_args__ = (
        Index("ix_ab_tests_link_id_status", "link_id", "status"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=ABTestStatus.ACTIVE.value,
        nullable=False,
    )
    linktree_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    link_id: Mapped[UUID] = mapped_column(nullable=False)
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    variants: Mapped[list["Variant"]] = relationship(
        back_populates="ab_test",
        cascade="all, delete-orphan",
        order_by="Variant.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<ABTest {self.name} [{self.status}] link={self.link_id}>"


class Variant(Base):
    """One title/url alternative with running impression/click totals."""

    __tablename__ = "ab_test_variants"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    ab_test_id: Mapped[UUID] = mapped_column(
        ForeignKey("ab_tests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    impressions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    ab_test: Mapped[ABTest] = relationship(back_populates="variants")

    def __repr__(self) -> str:
        return f"<Variant {self.title} {self.clicks}/{self.impressions}>"
