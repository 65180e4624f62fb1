"""User SQLAlchemy model."""

from uuid import UUID, uuid4

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from linkbio.core.database import Base, TimestampMixin


class User(TimestampMixin, Base):
    """User model for OAuth-authenticated users."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_users_provider_identity"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="OAuth provider: 'github' or 'google'",
    )
    provider_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="User ID from the OAuth provider",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
