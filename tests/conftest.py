"""
Pytest configuration and shared fixtures.
"""
import threading
from pathlib import Path
from typing import Dict, List
from unittest.mock import Mock

import pytest
import yaml

from s3_photo_sync.exceptions import UploadError
from s3_photo_sync.orchestrator import UploadOrchestrator
from s3_photo_sync.resolver.content_resolver import LocalFileResolver
from s3_photo_sync.staging.staging_store import StagingStore
from s3_photo_sync.storage.s3_client import S3ObjectStoreClient


class FakeObjectStore:
    """In-memory stand-in for S3ObjectStoreClient.put()."""

    def __init__(self, bucket: str = 'test-bucket'):
        self.bucket = bucket
        self.objects: Dict[str, bytes] = {}
        self.calls: List[dict] = []
        self.fail_names: set = set()
        self._lock = threading.Lock()

    def put(self, bucket, key, local_path, content_length, content_type=None):
        data = Path(local_path).read_bytes()
        with self._lock:
            self.calls.append({
                'bucket': bucket,
                'key': key,
                'content_length': content_length,
                'content_type': content_type,
                'staged_path': Path(local_path),
            })
        if any(name in data.decode('utf-8', 'ignore') for name in self.fail_names):
            raise UploadError(f"Access Denied for {key}", key=key, error_code='AccessDenied')
        with self._lock:
            self.objects[key] = data

    def check_bucket(self, bucket=None):
        return True


@pytest.fixture
def media_dir(tmp_path) -> Path:
    """Directory with three small photos."""
    directory = tmp_path / 'media'
    directory.mkdir()
    for name in ('one.jpg', 'two.png', 'three.mp4'):
        (directory / name).write_bytes(f'content of {name}'.encode())
    return directory


@pytest.fixture
def media_files(media_dir) -> List[str]:
    return sorted(str(p) for p in media_dir.iterdir())


@pytest.fixture
def staging_dir(tmp_path) -> Path:
    return tmp_path / 'staging'


@pytest.fixture
def resolver():
    return LocalFileResolver()


@pytest.fixture
def staging_store(staging_dir, resolver) -> StagingStore:
    return StagingStore(staging_dir, resolver)


@pytest.fixture
def fake_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def progress_events() -> list:
    return []


@pytest.fixture
def make_orchestrator(fake_store, staging_store, resolver, progress_events):
    """Factory for orchestrators wired to the fake store."""
    def factory(**kwargs) -> UploadOrchestrator:
        options = {
            'client_factory': lambda: fake_store,
            'staging_store': staging_store,
            'resolver': resolver,
            'bucket': 'test-bucket',
            'max_workers': 1,
            'retry_delay': 0,
            'on_progress': progress_events.append,
        }
        options.update(kwargs)
        return UploadOrchestrator(**options)
    return factory


@pytest.fixture
def mock_s3_client():
    """Mock boto3 S3 client."""
    client = Mock()
    client.put_object.return_value = {'ETag': '"abc"'}
    client.head_bucket.return_value = {}
    return client


@pytest.fixture
def object_store_client(mock_s3_client) -> S3ObjectStoreClient:
    return S3ObjectStoreClient(mock_s3_client, 'test-bucket')


@pytest.fixture
def sample_config(tmp_path) -> Dict:
    """Fixture providing a sample configuration dictionary."""
    return {
        'object_store': {
            'bucket': 'test-bucket',
            'region': 'us-east-1',
            'key_prefix': 'uploads',
        },
        'staging': {
            'cache_dir': str(tmp_path / 'cache'),
        },
        'sync': {
            'max_workers': 2,
            'max_retries': 0,
            'retry_delay': 0,
        },
        'logging': {
            'level': 'INFO',
        },
    }


@pytest.fixture
def config_file(tmp_path, sample_config) -> Path:
    """Create a temporary config.yaml file."""
    config_path = tmp_path / 'config.yaml'
    with open(config_path, 'w') as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real AWS settings out of the tests."""
    for name in ('S3_SYNC_BUCKET', 'AWS_REGION', 'S3_SYNC_ENDPOINT_URL', 'AWS_ACCESS_KEY_ID',
                 'AWS_SECRET_ACCESS_KEY', 'S3_SYNC_IDENTITY_POOL_ID'):
        monkeypatch.delenv(name, raising=False)
