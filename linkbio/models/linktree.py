"""Linktree and Link SQLAlchemy models."""

from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from linkbio.core.database import Base, TimestampMixin


class Linktree(TimestampMixin, Base):
    """A user-owned page listing outbound links.

    Links are owned by the linktree: they are only ever created, changed or
    removed through ``Linktree.links``.
    """

    __tablename__ = "linktrees"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
        comment="Public URL segment, lowercase letters, digits and hyphens",
    )
    theme: Mapped[str] = mapped_column(String(50), default="light", nullable=False)
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="At most one default linktree per user",
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    footer: Mapped[str] = mapped_column(Text, default="", nullable=False)

    links: Mapped[list["Link"]] = relationship(
        back_populates="linktree",
        cascade="all, delete-orphan",
        order_by="Link.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Linktree {self.slug}>"

    def get_link(self, link_id: UUID) -> "Link | None":
        """Look up an owned link by id."""
        for link in self.links:
            if link.id == link_id:
                return link
        return None


class Link(Base):
    """An outbound link inside a linktree."""

    __tablename__ = "links"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    linktree_id: Mapped[UUID] = mapped_column(
        ForeignKey("linktrees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(255), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    order: Mapped[int] = mapped_column(
        "order",
        Integer,
        nullable=False,
        comment="Display order; not unique, not contiguous",
    )
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Insertion index within the linktree; breaks order ties",
    )

    linktree: Mapped[Linktree] = relationship(back_populates="links")

    def __repr__(self) -> str:
        return f"<Link {self.title} -> {self.url[:50]}>"
