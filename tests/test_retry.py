"""
Tests for the retry decorator.
"""
from unittest.mock import patch

import pytest

from s3_photo_sync.exceptions import StagingError, UploadError
from s3_photo_sync.utils.retry import retry_with_backoff


class Flaky:
    def __init__(self, failures, error=UploadError):
        self.failures = failures
        self.error = error
        self.calls = 0

    def upload(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error("transient")
        return "ok"


@patch('s3_photo_sync.utils.retry.time.sleep')
def test_succeeds_after_retries(mock_sleep):
    flaky = Flaky(failures=2)
    upload = retry_with_backoff(max_retries=3, initial_delay=1.0, exceptions=(UploadError,))(flaky.upload)

    assert upload() == "ok"
    assert flaky.calls == 3
    assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]


@patch('s3_photo_sync.utils.retry.time.sleep')
def test_raises_last_error(mock_sleep):
    flaky = Flaky(failures=10)
    upload = retry_with_backoff(max_retries=2, exceptions=(UploadError,))(flaky.upload)

    with pytest.raises(UploadError):
        upload()
    assert flaky.calls == 3


@patch('s3_photo_sync.utils.retry.time.sleep')
def test_zero_retries_is_single_attempt(mock_sleep):
    flaky = Flaky(failures=1)
    upload = retry_with_backoff(max_retries=0, exceptions=(UploadError,))(flaky.upload)

    with pytest.raises(UploadError):
        upload()
    assert flaky.calls == 1
    mock_sleep.assert_not_called()


@patch('s3_photo_sync.utils.retry.time.sleep')
def test_other_exceptions_not_retried(mock_sleep):
    flaky = Flaky(failures=1, error=StagingError)
    upload = retry_with_backoff(max_retries=3, exceptions=(UploadError,))(flaky.upload)

    with pytest.raises(StagingError):
        upload()
    assert flaky.calls == 1


@patch('s3_photo_sync.utils.retry.time.sleep')
def test_delay_capped_and_callback(mock_sleep):
    attempts = []
    flaky = Flaky(failures=3)
    upload = retry_with_backoff(
        max_retries=3, initial_delay=5.0, max_delay=8.0,
        exceptions=(UploadError,), on_retry=lambda e, n: attempts.append(n)
    )(flaky.upload)

    upload()

    assert attempts == [1, 2, 3]
    assert [c.args[0] for c in mock_sleep.call_args_list] == [5.0, 8.0, 8.0]
