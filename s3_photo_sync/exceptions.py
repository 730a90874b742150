"""
Custom exceptions for the S3 photo sync tool.
"""
from typing import Optional


class SyncError(Exception):
    """Base exception for sync errors."""
    pass


class ConfigurationError(SyncError):
    """Error related to configuration."""
    pass


class ResolutionError(SyncError):
    """Content type of a media reference could not be determined."""
    pass


class StagingError(SyncError):
    """Error copying a media reference into the staging area."""

    def __init__(self, message: str, reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference


class UploadError(SyncError):
    """Error during object store upload (network, auth, quota)."""

    def __init__(self, message: str, key: Optional[str] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.key = key
        self.error_code = error_code


class CriticalInitError(SyncError):
    """The object store client or its credentials could not be set up.

    Raised before any task starts; aborts the whole batch.
    """
    pass
