"""Pure aggregation of click events for dashboards."""

from linkbio.aggregators.buckets import (
    DELETED_LINK_TITLE,
    bucket_by_day,
    bucket_by_link,
)

__all__ = [
    "DELETED_LINK_TITLE",
    "bucket_by_day",
    "bucket_by_link",
]
