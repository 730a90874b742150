"""Content resolver modules."""

from s3_photo_sync.resolver.content_resolver import (
    ContentResolver,
    LocalFileResolver,
    extension_for_mime,
)

__all__ = ['ContentResolver', 'LocalFileResolver', 'extension_for_mime']
