"""SQLAlchemy models.

All models should be imported here for Alembic to detect them.
"""

from linkbio.core.database import Base
from linkbio.models.ab_test import ABTest, ABTestStatus, Variant
from linkbio.models.analytics import AnalyticsEvent
from linkbio.models.linktree import Link, Linktree
from linkbio.models.user import User

__all__ = [
    "Base",
    "User",
    "Linktree",
    "Link",
    "ABTest",
    "ABTestStatus",
    "Variant",
    "AnalyticsEvent",
]
