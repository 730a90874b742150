"""Staging store modules."""

from s3_photo_sync.staging.staging_store import StagingStore

__all__ = ['StagingStore']
