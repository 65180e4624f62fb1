"""Business logic services."""

from linkbio.services import ab_test as ab_test_service
from linkbio.services import analytics as analytics_service
from linkbio.services import linktree as linktree_service
from linkbio.services import resolver as resolver_service
from linkbio.services import user as user_service

__all__ = [
    "ab_test_service",
    "analytics_service",
    "linktree_service",
    "resolver_service",
    "user_service",
]
