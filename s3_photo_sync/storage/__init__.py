"""
Storage module for S3-compatible object storage.
"""
from s3_photo_sync.storage.s3_client import (
    S3ObjectStoreClient,
    client_factory_for,
    create_s3_client,
)

__all__ = ['S3ObjectStoreClient', 'client_factory_for', 'create_s3_client']
