"""
Upload orchestrator: drives one batch of media references to the object store.
"""
import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, Tuple

from s3_photo_sync.exceptions import CriticalInitError, ResolutionError, StagingError, UploadError
from s3_photo_sync.models import (
    GENERIC_CONTENT_TYPE,
    GENERIC_EXTENSION,
    MediaReference,
    ProgressEvent,
    SyncBatch,
    TaskState,
    UploadTask,
)
from s3_photo_sync.reporting.reporter import progress_message
from s3_photo_sync.resolver.content_resolver import ContentResolver
from s3_photo_sync.staging.staging_store import StagingStore
from s3_photo_sync.storage.s3_client import S3ObjectStoreClient
from s3_photo_sync.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class UploadOrchestrator:
    """Stages, uploads and tallies a batch of media references."""

    def __init__(self,
                 client_factory: Callable[[], S3ObjectStoreClient],
                 staging_store: StagingStore,
                 resolver: ContentResolver,
                 bucket: Optional[str] = None,
                 key_prefix: str = "uploads",
                 max_workers: int = 3,
                 max_retries: int = 0,
                 retry_delay: float = 1.0,
                 on_progress: Optional[ProgressCallback] = None,
                 on_start: Optional[Callable[[SyncBatch], None]] = None):
        """
        Initialize the orchestrator.

        Args:
            client_factory: Builds the object store client; may raise CriticalInitError
            staging_store: Store that materializes references as temp files
            resolver: Resolver used to determine content types
            bucket: Target bucket (None uses the client's default bucket)
            key_prefix: Collection the remote keys are namespaced under
            max_workers: Tasks in flight at once (1 = sequential)
            max_retries: Extra attempts for a failed upload (0 = single attempt)
            retry_delay: Initial delay between upload attempts in seconds
            on_progress: Called with a ProgressEvent each time a task resolves
            on_start: Called with the new batch before the client is built
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.client_factory = client_factory
        self.staging_store = staging_store
        self.resolver = resolver
        self.bucket = bucket
        self.key_prefix = key_prefix.strip('/')
        self.max_workers = max_workers
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.on_progress = on_progress
        self.on_start = on_start

    def sync(self, references: Sequence[MediaReference], batch_id: Optional[str] = None) -> SyncBatch:
        """
        Upload every reference and return the final tally.

        Per-task failures are counted and never stop the batch. If the object
        store client cannot be created, the batch is returned aborted with
        zero successes and no progress events.

        Args:
            references: Media references to upload, possibly empty
            batch_id: Identifier for the batch (generated if omitted)

        Returns:
            Finished SyncBatch
        """
        batch = SyncBatch(batch_id=batch_id or uuid.uuid4().hex, total=len(references))

        if not references:
            logger.info(f"[{batch.batch_id}] Nothing to sync")
            batch.finish()
            return batch

        self._notify(self.on_start, batch)

        try:
            client = self.client_factory()
        except CriticalInitError as e:
            logger.error(f"[{batch.batch_id}] A critical error occurred, aborting batch: {e}")
            batch.abort(str(e))
            batch.finish()
            return batch

        batch.tasks = [UploadTask(reference=reference) for reference in references]
        lock = threading.Lock()

        def process(task: UploadTask) -> None:
            try:
                self._run_task(task, client)
            except Exception as e:
                logger.error(f"Unexpected error syncing {task.reference}: {e}", exc_info=True)
                task.mark_failed(str(e))
            finally:
                self._cleanup(task)
            with lock:
                completed = batch.record(task)
                self._notify(self.on_progress, ProgressEvent(
                    completed=completed,
                    total=batch.total,
                    message=progress_message(completed, batch.total),
                    reference=task.reference,
                    succeeded=task.state == TaskState.SUCCEEDED,
                ))

        logger.info(
            f"[{batch.batch_id}] Syncing {batch.total} items "
            f"({min(self.max_workers, batch.total)} at a time)"
        )

        if self.max_workers == 1 or batch.total == 1:
            for task in batch.tasks:
                process(task)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers,
                                    thread_name_prefix=f"sync-{batch.batch_id[:8]}") as executor:
                futures = [executor.submit(process, task) for task in batch.tasks]
                for future in as_completed(futures):
                    future.result()

        batch.finish()
        logger.info(
            f"[{batch.batch_id}] Batch finished: {batch.succeeded_count} succeeded, "
            f"{batch.failed_count} failed, {batch.total} total ({batch.duration:.1f}s)"
        )
        return batch

    def _resolve(self, reference: MediaReference) -> Tuple[str, str]:
        try:
            return self.resolver.resolve_extension(reference)
        except ResolutionError as e:
            logger.debug(f"{e}; using generic type")
            return GENERIC_CONTENT_TYPE, GENERIC_EXTENSION

    def _run_task(self, task: UploadTask, client: S3ObjectStoreClient) -> None:
        task.content_type, extension = self._resolve(task.reference)

        try:
            task.staged_path = self.staging_store.stage(task.reference, extension)
        except StagingError as e:
            logger.error(f"Failed to stage {task.reference}: {e}")
            task.mark_failed(str(e))
            return

        task.state = TaskState.STAGED
        task.size_bytes = task.staged_path.stat().st_size
        task.remote_key = f"{self.key_prefix}/{task.staged_path.name}"

        put = retry_with_backoff(
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            exceptions=(UploadError,),
        )(self._put)

        task.state = TaskState.UPLOADING
        try:
            put(client, task)
        except UploadError as e:
            logger.error(f"Failed to upload file for {task.reference}: {e}")
            task.mark_failed(str(e))
            return

        task.mark_succeeded()

    def _put(self, client: S3ObjectStoreClient, task: UploadTask) -> None:
        task.attempts += 1
        client.put(
            self.bucket,
            task.remote_key,
            task.staged_path,
            task.size_bytes,
            content_type=task.content_type,
        )

    def _cleanup(self, task: UploadTask) -> None:
        staged_path = task.staged_path
        task.staged_path = None
        self.staging_store.release(staged_path)

    def _notify(self, callback: Optional[Callable], payload) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception as e:
            logger.error(f"Reporter callback failed: {e}", exc_info=True)


def failed_references(batch: SyncBatch) -> List[MediaReference]:
    """References whose tasks failed, in batch order."""
    return [task.reference for task in batch.tasks if task.state == TaskState.FAILED]
