"""
Background sync service.

Runs each batch on its own thread so it outlives whatever started it; the
caller only keeps a SyncHandle. Progress and completion go out through the
SyncEventBus.
"""
import logging
import threading
import uuid
from datetime import date
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Union

from s3_photo_sync.config import SyncAppConfig
from s3_photo_sync.models import MediaReference, SyncBatch
from s3_photo_sync.orchestrator import UploadOrchestrator
from s3_photo_sync.reporting.reporter import SyncEventBus
from s3_photo_sync.resolver.content_resolver import ContentResolver, LocalFileResolver
from s3_photo_sync.selection.media_query import find_media_for_date_range, normalize_references
from s3_photo_sync.staging.staging_store import StagingStore
from s3_photo_sync.storage.s3_client import S3ObjectStoreClient, client_factory_for

logger = logging.getLogger(__name__)


class SyncHandle:
    """Reference to a batch running in the background."""

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        self._done = threading.Event()
        self._result: Optional[SyncBatch] = None
        self._error: Optional[BaseException] = None
        self.thread: Optional[threading.Thread] = None

    @classmethod
    def completed(cls, batch: SyncBatch) -> 'SyncHandle':
        handle = cls(batch.batch_id)
        handle._set_result(batch)
        return handle

    def _set_result(self, batch: SyncBatch) -> None:
        self._result = batch
        self._done.set()

    def _set_error(self, error: BaseException) -> None:
        self._error = error
        self._done.set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def result(self) -> Optional[SyncBatch]:
        return self._result

    def wait(self, timeout: Optional[float] = None) -> Optional[SyncBatch]:
        """
        Block until the batch has finished.

        Returns:
            The finished batch, or None if the timeout expired first
        """
        if not self._done.wait(timeout):
            return None
        if self._error is not None:
            raise self._error
        return self._result


class SyncService:
    """Entry point shared by the date-range and manual-selection flows."""

    def __init__(self,
                 config: SyncAppConfig,
                 event_bus: Optional[SyncEventBus] = None,
                 resolver: Optional[ContentResolver] = None,
                 client_factory: Optional[Callable[[], S3ObjectStoreClient]] = None):
        """
        Initialize the sync service.

        Args:
            config: Application configuration
            event_bus: Channel for progress/completion (a private one if omitted)
            resolver: Content resolver (defaults to local files)
            client_factory: Object store client factory (defaults to boto3 from config)
        """
        self.config = config
        self.event_bus = event_bus or SyncEventBus()
        self.resolver = resolver or LocalFileResolver()
        self.client_factory = client_factory or client_factory_for(config.object_store)
        self.staging_store = StagingStore(config.staging.cache_path, self.resolver)

        # Nothing is resumed across runs; staged files from a killed process are orphans
        self.staging_store.purge()

    def _build_orchestrator(self) -> UploadOrchestrator:
        return UploadOrchestrator(
            client_factory=self.client_factory,
            staging_store=self.staging_store,
            resolver=self.resolver,
            bucket=self.config.object_store.bucket,
            key_prefix=self.config.object_store.key_prefix,
            max_workers=self.config.sync.max_workers,
            max_retries=self.config.sync.max_retries,
            retry_delay=self.config.sync.retry_delay,
            on_progress=self.event_bus.publish_progress,
            on_start=self.event_bus.publish_start,
        )

    def start(self, references: Sequence[MediaReference]) -> SyncHandle:
        """
        Start syncing a batch in the background.

        An empty batch finishes immediately without starting a thread.

        Returns:
            Handle to wait on the batch
        """
        batch_id = uuid.uuid4().hex
        references = list(references)

        if not references:
            logger.info("No media references given; nothing to sync")
            batch = SyncBatch(batch_id=batch_id, total=0)
            batch.finish()
            return SyncHandle.completed(batch)

        handle = SyncHandle(batch_id)
        handle.thread = threading.Thread(
            target=self._run_batch,
            args=(references, handle),
            name=f"sync-batch-{batch_id[:8]}",
            daemon=False,
        )
        logger.debug(f"Starting batch {batch_id} with {len(references)} items")
        handle.thread.start()
        return handle

    def _run_batch(self, references: Sequence[MediaReference], handle: SyncHandle) -> None:
        try:
            batch = self._build_orchestrator().sync(references, batch_id=handle.batch_id)
        except Exception as e:
            logger.error(f"Batch {handle.batch_id} crashed: {e}", exc_info=True)
            handle._set_error(e)
            return

        self.event_bus.publish_complete(batch)
        handle._set_result(batch)

    def sync_selection(self, references: Iterable[str]) -> SyncHandle:
        """Sync an explicit selection of media references."""
        return self.start(normalize_references(references))

    def sync_date_range(self, media_dir: Union[str, Path], start_date: date, end_date: date) -> SyncHandle:
        """Sync every photo/video under media_dir modified in the date range."""
        return self.start(find_media_for_date_range(media_dir, start_date, end_date))

    def run(self, references: Sequence[MediaReference]) -> SyncBatch:
        """Sync a batch and block until it finishes."""
        return self.start(references).wait()
