"""
Tests for the upload orchestrator.
"""
import threading
import time
from unittest.mock import Mock

import pytest

from s3_photo_sync.exceptions import CriticalInitError, StagingError, UploadError
from s3_photo_sync.models import TaskState
from s3_photo_sync.orchestrator import UploadOrchestrator, failed_references


class TestEmptyBatch:
    """An empty batch is a no-op success."""

    def test_empty_batch_completes_without_client(self, make_orchestrator, progress_events, staging_dir):
        factory = Mock()
        orchestrator = make_orchestrator(client_factory=factory)

        batch = orchestrator.sync([])

        assert batch.total == 0
        assert batch.succeeded_count == 0
        assert batch.failed_count == 0
        assert batch.is_complete
        assert not batch.aborted
        factory.assert_not_called()
        assert progress_events == []
        assert list(staging_dir.iterdir()) == []


class TestSequentialSync:
    """Tests with one task in flight."""

    def test_all_succeed(self, make_orchestrator, media_files, fake_store, progress_events, staging_dir):
        batch = make_orchestrator().sync(media_files)

        assert (batch.succeeded_count, batch.failed_count, batch.total) == (3, 0, 3)
        assert [e.completed for e in progress_events] == [1, 2, 3]
        assert all(e.total == 3 for e in progress_events)
        assert progress_events[-1].message == "Uploading 3 of 3..."
        assert len(fake_store.objects) == 3
        assert list(staging_dir.iterdir()) == []

    def test_remote_keys_use_prefix_and_staged_name(self, make_orchestrator, media_files, fake_store):
        batch = make_orchestrator(key_prefix='uploads/').sync(media_files)

        for task, call in zip(batch.tasks, fake_store.calls):
            assert task.remote_key == call['key']
            assert task.remote_key.startswith('uploads/')
            assert task.remote_key.split('/', 1)[1] == call['staged_path'].name

    def test_upload_metadata(self, make_orchestrator, media_dir, fake_store):
        photo = media_dir / 'one.jpg'
        make_orchestrator().sync([str(photo)])

        call = fake_store.calls[0]
        assert call['bucket'] == 'test-bucket'
        assert call['content_length'] == photo.stat().st_size
        assert call['content_type'] == 'image/jpeg'
        assert call['key'].endswith('.jpg')

    def test_unknown_type_falls_back_to_generic_extension(self, make_orchestrator, tmp_path, fake_store):
        odd = tmp_path / 'capture.unknownext'
        odd.write_bytes(b'raw')

        batch = make_orchestrator().sync([str(odd)])

        assert batch.succeeded_count == 1
        assert fake_store.calls[0]['key'].endswith('.bin')
        assert fake_store.calls[0]['content_type'] == 'application/octet-stream'

    def test_same_reference_twice_gets_distinct_keys(self, make_orchestrator, media_dir, fake_store):
        photo = str(media_dir / 'one.jpg')
        batch = make_orchestrator().sync([photo, photo])

        assert batch.succeeded_count == 2
        assert len({task.remote_key for task in batch.tasks}) == 2
        assert len(fake_store.objects) == 2

    def test_staging_failure_does_not_stop_batch(self, make_orchestrator, media_dir, progress_events, staging_dir):
        references = [
            str(media_dir / 'one.jpg'),
            str(media_dir / 'missing.jpg'),
            str(media_dir / 'three.mp4'),
        ]

        batch = make_orchestrator().sync(references)

        assert (batch.succeeded_count, batch.failed_count, batch.total) == (2, 1, 3)
        assert [e.completed for e in progress_events] == [1, 2, 3]
        assert progress_events[1].succeeded is False
        assert batch.tasks[1].state == TaskState.FAILED
        assert batch.tasks[1].remote_key == ''
        assert failed_references(batch) == [references[1]]
        assert list(staging_dir.iterdir()) == []

    def test_upload_failure_is_counted(self, make_orchestrator, media_files, fake_store, staging_dir):
        fake_store.fail_names.add('two.png')

        batch = make_orchestrator().sync(media_files)

        assert (batch.succeeded_count, batch.failed_count, batch.total) == (2, 1, 3)
        failed = [t for t in batch.tasks if t.state == TaskState.FAILED]
        assert 'Access Denied' in failed[0].error
        assert failed[0].attempts == 1
        assert list(staging_dir.iterdir()) == []

    def test_staged_file_removed_after_each_task(self, make_orchestrator, media_files, staging_dir, progress_events):
        seen = []
        orchestrator = make_orchestrator(on_progress=lambda e: seen.append(list(staging_dir.iterdir())))

        orchestrator.sync(media_files)

        assert seen == [[], [], []]

    def test_unexpected_error_fails_task_only(self, make_orchestrator, media_files, staging_dir):
        client = Mock()
        client.put.side_effect = [None, RuntimeError("boom"), None]

        batch = make_orchestrator(client_factory=lambda: client).sync(media_files)

        assert (batch.succeeded_count, batch.failed_count) == (2, 1)
        assert batch.tasks[1].error == "boom"
        assert list(staging_dir.iterdir()) == []

    def test_staging_error_from_store(self, make_orchestrator, media_files, staging_store):
        staging_store.stage = Mock(side_effect=StagingError("disk full"))

        batch = make_orchestrator().sync(media_files)

        assert batch.failed_count == 3
        assert all(t.error == "disk full" for t in batch.tasks)

    def test_progress_callback_error_does_not_break_batch(self, make_orchestrator, media_files):
        orchestrator = make_orchestrator(on_progress=Mock(side_effect=ValueError("listener")))

        batch = orchestrator.sync(media_files)

        assert batch.succeeded_count == 3

    def test_bytes_uploaded(self, make_orchestrator, media_dir):
        batch = make_orchestrator().sync([str(p) for p in media_dir.iterdir()])

        expected = sum(p.stat().st_size for p in media_dir.iterdir())
        assert batch.bytes_uploaded == expected


class TestRetries:
    """Opt-in retry of failed uploads."""

    def test_single_attempt_by_default(self, make_orchestrator, media_dir):
        client = Mock()
        client.put.side_effect = UploadError("timeout")

        batch = make_orchestrator(client_factory=lambda: client).sync([str(media_dir / 'one.jpg')])

        assert batch.failed_count == 1
        assert client.put.call_count == 1

    def test_retry_reuses_task_key(self, make_orchestrator, media_dir):
        client = Mock()
        client.put.side_effect = [UploadError("timeout"), None]

        batch = make_orchestrator(client_factory=lambda: client, max_retries=2).sync([str(media_dir / 'one.jpg')])

        assert batch.succeeded_count == 1
        assert batch.tasks[0].attempts == 2
        first_key = client.put.call_args_list[0].args[1]
        second_key = client.put.call_args_list[1].args[1]
        assert first_key == second_key == batch.tasks[0].remote_key

    def test_retries_exhausted(self, make_orchestrator, media_dir):
        client = Mock()
        client.put.side_effect = UploadError("quota exceeded")

        batch = make_orchestrator(client_factory=lambda: client, max_retries=2).sync([str(media_dir / 'one.jpg')])

        assert batch.failed_count == 1
        assert client.put.call_count == 3


class TestCriticalInit:
    """Client creation failure aborts the batch."""

    def test_abort_reports_zero_successes(self, make_orchestrator, media_files, progress_events, staging_dir):
        factory = Mock(side_effect=CriticalInitError("no credentials"))
        started = []

        batch = make_orchestrator(client_factory=factory, on_start=started.append).sync(media_files)

        assert batch.aborted
        assert (batch.succeeded_count, batch.failed_count, batch.total) == (0, 0, 3)
        assert batch.abort_reason == "no credentials"
        assert batch.summary() == "Sync aborted: no credentials"
        assert batch.is_complete
        assert progress_events == []
        assert len(started) == 1
        assert list(staging_dir.iterdir()) == []


class TestConcurrentSync:
    """Tests with several tasks in flight."""

    def test_parallel_tally_and_progress(self, make_orchestrator, tmp_path, fake_store, progress_events, staging_dir):
        references = []
        for i in range(20):
            path = tmp_path / f'photo_{i}.jpg'
            path.write_bytes(f'photo {i}'.encode())
            references.append(str(path))
        fake_store.fail_names.update({'photo 3', 'photo 7'})

        batch = make_orchestrator(max_workers=4).sync(references)

        assert batch.succeeded_count + batch.failed_count == batch.total == 20
        assert batch.failed_count == 2
        assert [e.completed for e in progress_events] == list(range(1, 21))
        assert sum(1 for e in progress_events if e.completed == batch.total) == 1
        assert list(staging_dir.iterdir()) == []

    def test_staged_names_unique(self, make_orchestrator, media_dir, fake_store):
        photo = str(media_dir / 'one.jpg')

        make_orchestrator(max_workers=5).sync([photo] * 10)

        names = [call['staged_path'].name for call in fake_store.calls]
        assert len(names) == 10
        assert len(set(names)) == 10

    def test_bounded_concurrency(self, make_orchestrator, tmp_path):
        in_flight = 0
        peak = 0
        lock = threading.Lock()

        def slow_put(*args, **kwargs):
            nonlocal in_flight, peak
            with lock:
                in_flight += 1
                peak = max(peak, in_flight)
            time.sleep(0.02)
            with lock:
                in_flight -= 1

        client = Mock()
        client.put.side_effect = slow_put
        references = []
        for i in range(9):
            path = tmp_path / f'clip_{i}.mp4'
            path.write_bytes(b'x')
            references.append(str(path))

        batch = make_orchestrator(client_factory=lambda: client, max_workers=3).sync(references)

        assert batch.succeeded_count == 9
        assert 1 <= peak <= 3

    def test_result_only_after_all_tasks(self, make_orchestrator, media_files, progress_events):
        batch = make_orchestrator(max_workers=3).sync(media_files)

        assert batch.is_complete
        assert all(task.state.is_terminal for task in batch.tasks)
        assert len(progress_events) == batch.total


def test_invalid_worker_count(staging_store, resolver):
    with pytest.raises(ValueError):
        UploadOrchestrator(Mock(), staging_store, resolver, max_workers=0)
