"""A/B test Pydantic schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator

from linkbio.models.ab_test import ABTestStatus
from linkbio.schemas.base import CamelModel, check_outbound_url


class VariantCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=2048)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return check_outbound_url(v)


class ABTestCreate(CamelModel):
    """Schema for creating an A/B test.

    The two-variant minimum is enforced by the service so that every caller
    gets the same error.
    """

    name: str = Field(min_length=1, max_length=255)
    variants: list[VariantCreate]
    linktree_id: UUID
    link_id: UUID


class ABTestStatusUpdate(CamelModel):
    status: ABTestStatus


class VariantResponse(CamelModel):
    id: UUID
    title: str
    url: str
    impressions: int
    clicks: int


class ABTestResponse(CamelModel):
    id: UUID
    name: str
    status: ABTestStatus
    linktree_id: UUID
    link_id: UUID
    start_date: datetime
    end_date: datetime | None
    variants: list[VariantResponse]
    created_at: datetime


class PublicVariant(CamelModel):
    """Variant as exposed to anonymous visitors: no counters."""

    id: UUID
    title: str
    url: str


class ActiveTestResponse(CamelModel):
    id: UUID
    status: ABTestStatus
    variants: list[PublicVariant]


class MetricEvent(CamelModel):
    """Impression or click reported by a visitor's browser."""

    variant_id: UUID
    type: Literal["impression", "click"]


class MetricRecorded(CamelModel):
    success: bool = True


class VariantMetrics(CamelModel):
    variant_id: UUID
    title: str
    impressions: int
    clicks: int
    ctr: float = Field(description="clicks / impressions x 100; 0 without impressions")


class ABTestMetricsResponse(CamelModel):
    metrics: list[VariantMetrics]
    winner: VariantMetrics | None = Field(
        default=None,
        description="Only set once the test is completed",
    )
    start_date: datetime
    end_date: datetime | None
    status: ABTestStatus
