"""Progress reporting and batch reports."""

from s3_photo_sync.reporting.reporter import (
    LoggingReporter,
    ResultReporter,
    Subscription,
    SyncEventBus,
    TqdmReporter,
)
from s3_photo_sync.reporting.report_generator import ReportGenerator

__all__ = [
    'LoggingReporter',
    'ReportGenerator',
    'ResultReporter',
    'Subscription',
    'SyncEventBus',
    'TqdmReporter',
]
