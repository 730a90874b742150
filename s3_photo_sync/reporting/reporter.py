"""
Progress and completion reporting for sync batches.

``SyncEventBus`` is the channel a front end subscribes to while it is active.
Delivery is at-most-once: events published while nobody listens are dropped.
"""
import logging
import threading
import weakref
from typing import Callable, Dict, List, Optional, Set

from tqdm import tqdm

from s3_photo_sync.models import ProgressEvent, SyncBatch

logger = logging.getLogger(__name__)

PREPARING_MESSAGE = "Preparing to sync..."


def progress_message(completed: int, total: int) -> str:
    return f"Uploading {completed} of {total}..."


class ResultReporter:
    """Receives progress events and the terminal tally of a batch."""

    def on_start(self, batch: SyncBatch) -> None:
        pass

    def on_progress(self, event: ProgressEvent) -> None:
        pass

    def on_complete(self, batch: SyncBatch) -> None:
        pass


class LoggingReporter(ResultReporter):
    """Writes progress and the final summary to the log."""

    def on_start(self, batch: SyncBatch) -> None:
        logger.info(f"[{batch.batch_id}] {PREPARING_MESSAGE} ({batch.total} items)")

    def on_progress(self, event: ProgressEvent) -> None:
        if event.succeeded:
            logger.info(event.message)
        else:
            logger.warning(f"{event.message} (failed: {event.reference})")

    def on_complete(self, batch: SyncBatch) -> None:
        if batch.aborted:
            logger.error(f"[{batch.batch_id}] {batch.summary()}")
        else:
            logger.info(f"[{batch.batch_id}] {batch.summary()}")


class TqdmReporter(ResultReporter):
    """Shows batch progress as a tqdm progress bar."""

    def __init__(self, desc: str = "Syncing photos", **tqdm_kwargs):
        self.desc = desc
        self.tqdm_kwargs = tqdm_kwargs
        self._bar: Optional[tqdm] = None

    def on_start(self, batch: SyncBatch) -> None:
        self._bar = tqdm(total=batch.total, desc=self.desc, unit="file", **self.tqdm_kwargs)

    def on_progress(self, event: ProgressEvent) -> None:
        if self._bar is None:
            return
        self._bar.update(event.completed - self._bar.n)
        self._bar.set_postfix_str(event.message, refresh=False)

    def on_complete(self, batch: SyncBatch) -> None:
        if self._bar is None:
            return
        self._bar.close()
        self._bar = None


class Subscription:
    """Handle returned by SyncEventBus.subscribe()."""

    def __init__(self, bus: 'SyncEventBus', listener: ResultReporter):
        self._bus = bus
        self.listener = listener

    @property
    def active(self) -> bool:
        return self._bus.is_subscribed(self.listener)

    def unsubscribe(self) -> None:
        self._bus.unsubscribe(self.listener)

    def __enter__(self) -> 'Subscription':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


class SyncEventBus:
    """
    Fan-out of batch events to the currently subscribed listeners.

    Listeners subscribe when they become active and unsubscribe when they go
    away. A completion is delivered to each listener at most once per batch;
    the record of who got it lives only as long as the batch object.
    Listener errors are logged and never reach the batch.
    """

    def __init__(self):
        # Reentrant: a batch finalizer may fire during GC while the lock is held
        self._lock = threading.RLock()
        self._listeners: List[ResultReporter] = []
        self._delivered: Dict[str, Set[int]] = {}

    def subscribe(self, listener: ResultReporter) -> Subscription:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)
        return Subscription(self, listener)

    def unsubscribe(self, listener: ResultReporter) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def is_subscribed(self, listener: ResultReporter) -> bool:
        with self._lock:
            return listener in self._listeners

    def _snapshot(self) -> List[ResultReporter]:
        with self._lock:
            return list(self._listeners)

    def _dispatch(self, listener: ResultReporter, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Listener {listener!r} raised: {e}", exc_info=True)

    def publish_start(self, batch: SyncBatch) -> None:
        for listener in self._snapshot():
            self._dispatch(listener, lambda: listener.on_start(batch))

    def publish_progress(self, event: ProgressEvent) -> None:
        for listener in self._snapshot():
            self._dispatch(listener, lambda: listener.on_progress(event))

    def publish_complete(self, batch: SyncBatch) -> int:
        """
        Deliver the terminal tally to current listeners.

        Returns:
            Number of listeners that received it
        """
        listeners = self._snapshot()
        if not listeners:
            logger.debug(f"No listener for completion of batch {batch.batch_id}; dropped")
            return 0

        delivered = 0
        for listener in listeners:
            with self._lock:
                seen = self._delivered.get(batch.batch_id)
                if seen is None:
                    seen = self._delivered[batch.batch_id] = set()
                    weakref.finalize(batch, self._forget, batch.batch_id)
                if id(listener) in seen:
                    continue
                seen.add(id(listener))
            self._dispatch(listener, lambda: listener.on_complete(batch))
            delivered += 1
        return delivered

    def _forget(self, batch_id: str) -> None:
        with self._lock:
            self._delivered.pop(batch_id, None)
