"""Media selection modules."""

from s3_photo_sync.selection.media_query import (
    find_media_for_date_range,
    normalize_references,
)

__all__ = ['find_media_for_date_range', 'normalize_references']
