"""Linktree and Link Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from linkbio.schemas.base import CamelModel, check_outbound_url

SLUG_PATTERN = r"^[a-z0-9-]+$"


class LinkCreate(CamelModel):
    """Schema for adding a link to a linktree."""

    title: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=2048)
    icon: str | None = Field(default=None, max_length=255)
    enabled: bool = True
    order: int | None = Field(
        default=None,
        description="Display order; defaults to the current number of links",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return check_outbound_url(v)


class LinkUpdate(CamelModel):
    """Schema for updating a link. Only the fields sent are changed."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    url: str | None = Field(default=None, min_length=1, max_length=2048)
    icon: str | None = Field(default=None, max_length=255)
    enabled: bool | None = None
    order: int | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        return v if v is None else check_outbound_url(v)


class LinkOrder(CamelModel):
    id: UUID
    order: int


class LinkReorder(CamelModel):
    """New ``order`` values; ids not in the linktree are ignored."""

    links: list[LinkOrder]


class LinkResponse(CamelModel):
    id: UUID
    title: str
    url: str
    icon: str | None
    enabled: bool
    order: int


class LinktreeCreate(CamelModel):
    """Schema for creating a linktree."""

    title: str = Field(min_length=1, max_length=255)
    slug: str = Field(
        min_length=1,
        max_length=100,
        pattern=SLUG_PATTERN,
        description="Lowercase letters, numbers, and hyphens",
    )
    theme: str | None = Field(default=None, max_length=50)
    is_default: bool = False
    is_public: bool = True
    footer: str | None = Field(default=None, max_length=1000)


class LinktreeUpdate(CamelModel):
    """Schema for updating a linktree. Only the fields sent are changed."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    theme: str | None = Field(default=None, max_length=50)
    is_default: bool | None = None
    is_public: bool | None = None
    footer: str | None = Field(default=None, max_length=1000)


class LinktreeSummary(CamelModel):
    """Row in the owner's linktree list."""

    id: UUID
    title: str
    slug: str
    theme: str
    is_default: bool
    created_at: datetime


class LinktreeResponse(CamelModel):
    id: UUID
    user_id: UUID
    title: str
    slug: str
    theme: str
    is_default: bool
    is_public: bool
    footer: str
    links: list[LinkResponse]
    created_at: datetime
    updated_at: datetime
