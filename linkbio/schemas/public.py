"""Schemas for the anonymous page-view path."""

from uuid import UUID

from pydantic import Field

from linkbio.schemas.base import CamelModel


class OwnerProfile(CamelModel):
    """What visitors see of the person behind a linktree."""

    name: str | None = None
    avatar_url: str | None = None


class SnapshotLink(CamelModel):
    id: UUID
    title: str
    url: str
    icon: str | None
    enabled: bool
    order: int


class LinktreeSnapshot(CamelModel):
    """Everything the resolver needs about a linktree; safe to cache.

    ``links`` keeps stored (insertion) order so sorting by ``order`` stays
    stable for ties.
    """

    id: UUID
    user_id: UUID
    slug: str
    title: str
    theme: str
    footer: str
    is_public: bool
    links: list[SnapshotLink]
    # Entries cached before the profile was part of the snapshot lack it
    owner: OwnerProfile = Field(default_factory=OwnerProfile)


class PublicLink(CamelModel):
    """A link as shown to a visitor, after any A/B substitution.

    ``ab_test_id``/``variant_id`` are set when a variant was served, so the
    client can report the click against it.
    """

    id: UUID
    title: str
    url: str
    icon: str | None = None
    ab_test_id: UUID | None = None
    variant_id: UUID | None = None


class PublicLinktree(CamelModel):
    id: UUID
    slug: str
    title: str
    theme: str
    footer: str
    owner: OwnerProfile
    links: list[PublicLink]
