"""Pydantic schemas."""

from linkbio.schemas.ab_test import (
    ABTestCreate,
    ABTestMetricsResponse,
    ABTestResponse,
    ABTestStatusUpdate,
    ActiveTestResponse,
    MetricEvent,
    MetricRecorded,
    PublicVariant,
    VariantCreate,
    VariantMetrics,
    VariantResponse,
)
from linkbio.schemas.analytics import (
    AnalyticsEventCreate,
    AnalyticsEventCreated,
    AnalyticsEventResponse,
    AnalyticsSummary,
    DailyCount,
    LinkClickCount,
)
from linkbio.schemas.linktree import (
    LinkCreate,
    LinkOrder,
    LinkReorder,
    LinkResponse,
    LinktreeCreate,
    LinktreeResponse,
    LinktreeSummary,
    LinktreeUpdate,
    LinkUpdate,
)
from linkbio.schemas.public import (
    LinktreeSnapshot,
    PublicLink,
    PublicLinktree,
    SnapshotLink,
)
from linkbio.schemas.user import UserCreate, UserResponse, UserUpdate

__all__ = [
    "ABTestCreate",
    "ABTestMetricsResponse",
    "ABTestResponse",
    "ABTestStatusUpdate",
    "ActiveTestResponse",
    "MetricEvent",
    "MetricRecorded",
    "PublicVariant",
    "VariantCreate",
    "VariantMetrics",
    "VariantResponse",
    "AnalyticsEventCreate",
    "AnalyticsEventCreated",
    "AnalyticsEventResponse",
    "AnalyticsSummary",
    "DailyCount",
    "LinkClickCount",
    "LinkCreate",
    "LinkOrder",
    "LinkReorder",
    "LinkResponse",
    "LinktreeCreate",
    "LinktreeResponse",
    "LinktreeSummary",
    "LinktreeUpdate",
    "LinkUpdate",
    "LinktreeSnapshot",
    "PublicLink",
    "PublicLinktree",
    "SnapshotLink",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
