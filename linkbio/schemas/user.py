"""User Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from linkbio.schemas.base import CamelModel


class UserCreate(BaseModel):
    """Schema for creating a user (from OAuth)."""

    email: EmailStr
    name: str | None = None
    avatar_url: str | None = None
    provider: str
    provider_id: str


class UserUpdate(CamelModel):
    """Profile fields a user may change."""

    name: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = None


class UserResponse(CamelModel):
    id: UUID
    email: str
    name: str | None
    avatar_url: str | None
    provider: str
    created_at: datetime
