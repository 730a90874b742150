"""
Data model for sync batches: tasks, tallies and progress events.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

# Opaque locator for a local photo/video (path or file:// URI)
MediaReference = str

GENERIC_CONTENT_TYPE = "application/octet-stream"
GENERIC_EXTENSION = "bin"


class TaskState(Enum):
    """States an upload task moves through."""
    PENDING = "pending"
    STAGED = "staged"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.SUCCEEDED, TaskState.FAILED)


@dataclass
class UploadTask:
    """One media reference on its way to the object store."""
    reference: MediaReference
    remote_key: str = ""
    staged_path: Optional[Path] = None
    state: TaskState = TaskState.PENDING
    content_type: str = GENERIC_CONTENT_TYPE
    size_bytes: int = 0
    attempts: int = 0
    error: Optional[str] = None

    def mark_succeeded(self) -> None:
        self.state = TaskState.SUCCEEDED
        self.error = None

    def mark_failed(self, error: str) -> None:
        self.state = TaskState.FAILED
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        return {
            'reference': self.reference,
            'remote_key': self.remote_key,
            'state': self.state.value,
            'content_type': self.content_type,
            'size_bytes': self.size_bytes,
            'attempts': self.attempts,
            'error': self.error,
        }


@dataclass(frozen=True)
class ProgressEvent:
    """Cumulative progress after one task resolved."""
    completed: int
    total: int
    message: str
    reference: Optional[MediaReference] = None
    succeeded: bool = True


@dataclass
class SyncBatch:
    """Tally of one sync operation.

    ``succeeded_count + failed_count`` never exceeds ``total`` and equals it
    once a batch that was not aborted has finished.
    """
    batch_id: str
    total: int = 0
    tasks: List[UploadTask] = field(default_factory=list)
    succeeded_count: int = 0
    failed_count: int = 0
    bytes_uploaded: int = 0
    aborted: bool = False
    abort_reason: Optional[str] = None
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    @property
    def completed(self) -> int:
        """Number of tasks that reached a terminal state."""
        return self.succeeded_count + self.failed_count

    @property
    def failures(self) -> int:
        """Requested items that were not uploaded, including aborted ones."""
        return self.total - self.succeeded_count

    @property
    def is_complete(self) -> bool:
        return self.finished_at is not None

    @property
    def duration(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def record(self, task: UploadTask) -> int:
        """Count a resolved task and return the new completed count.

        Callers must hold the aggregator lock.
        """
        if task.state == TaskState.SUCCEEDED:
            self.succeeded_count += 1
            self.bytes_uploaded += task.size_bytes
        elif task.state == TaskState.FAILED:
            self.failed_count += 1
        else:
            raise ValueError(f"Task for {task.reference} is not resolved: {task.state.value}")
        return self.completed

    def abort(self, reason: str) -> None:
        self.aborted = True
        self.abort_reason = reason
        self.succeeded_count = 0
        self.failed_count = 0
        self.bytes_uploaded = 0

    def finish(self) -> None:
        """Mark batch as finished."""
        self.finished_at = time.time()

    def summary(self) -> str:
        """Human-readable status line for the end user."""
        if self.aborted:
            return f"Sync aborted: {self.abort_reason}"
        if self.failed_count:
            return (
                f"{self.succeeded_count} items uploaded successfully, "
                f"{self.failed_count} of {self.total} failed."
            )
        return f"{self.succeeded_count} items uploaded successfully."

    def to_dict(self) -> Dict[str, Any]:
        return {
            'batch_id': self.batch_id,
            'total': self.total,
            'succeeded': self.succeeded_count,
            'failed': self.failed_count,
            'bytes_uploaded': self.bytes_uploaded,
            'aborted': self.aborted,
            'abort_reason': self.abort_reason,
            'duration_seconds': self.duration,
            'tasks': [task.to_dict() for task in self.tasks],
        }
