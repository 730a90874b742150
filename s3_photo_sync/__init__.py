"""
S3 Photo Sync

Uploads user-selected photos and videos (by date range or explicit selection)
to an S3-compatible bucket, staging each item in a private cache, reporting
progress while the batch runs and a final tally when it ends.
"""
__version__ = "1.0.0"

from s3_photo_sync.config import SyncAppConfig
from s3_photo_sync.exceptions import (
    SyncError,
    ConfigurationError,
    ResolutionError,
    StagingError,
    UploadError,
    CriticalInitError,
)
from s3_photo_sync.models import ProgressEvent, SyncBatch, TaskState, UploadTask
from s3_photo_sync.orchestrator import UploadOrchestrator
from s3_photo_sync.service import SyncHandle, SyncService

__all__ = [
    '__version__',
    'SyncAppConfig',
    'SyncError',
    'ConfigurationError',
    'ResolutionError',
    'StagingError',
    'UploadError',
    'CriticalInitError',
    'ProgressEvent',
    'SyncBatch',
    'TaskState',
    'UploadTask',
    'UploadOrchestrator',
    'SyncHandle',
    'SyncService',
]
