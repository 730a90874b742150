"""
S3-compatible object store client.

Wraps boto3 so the orchestrator sees a single synchronous put() that either
returns or raises UploadError. Works with AWS S3 and any S3-compatible store
(MinIO, Cloudflare R2) through ``endpoint_url``.
"""
import logging
from pathlib import Path
from typing import Callable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3_photo_sync.config import ObjectStoreConfig
from s3_photo_sync.exceptions import CriticalInitError, UploadError

logger = logging.getLogger(__name__)


def _error_code(error: Exception) -> Optional[str]:
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code')
    return type(error).__name__


class S3ObjectStoreClient:
    """
    Narrow put-object adapter over a boto3 S3 client.
    """

    def __init__(self, client, bucket: str):
        """
        Args:
            client: boto3 S3 client (or anything with put_object/head_bucket)
            bucket: Default bucket for uploads
        """
        self._client = client
        self.bucket = bucket

    def put(self, bucket: Optional[str], key: str, local_path: Path,
            content_length: int, content_type: Optional[str] = None) -> None:
        """
        Upload a local file under ``key``.

        Args:
            bucket: Target bucket (None uses the default bucket)
            key: Object key
            local_path: Staged file to send
            content_length: Size of the file in bytes
            content_type: MIME type stored with the object

        Raises:
            UploadError: On any network, auth or quota failure
        """
        bucket = bucket or self.bucket
        params = {
            'Bucket': bucket,
            'Key': key,
            'ContentLength': content_length,
        }
        if content_type:
            params['ContentType'] = content_type

        try:
            with open(local_path, 'rb') as body:
                self._client.put_object(Body=body, **params)
        except (ClientError, BotoCoreError) as e:
            raise UploadError(
                f"Upload of {key} to bucket {bucket} failed: {e}",
                key=key,
                error_code=_error_code(e),
            ) from e
        except OSError as e:
            raise UploadError(f"Cannot read staged file for {key}: {e}", key=key) from e

        logger.debug(f"Uploaded s3://{bucket}/{key} ({content_length} bytes)")

    def check_bucket(self, bucket: Optional[str] = None) -> bool:
        """
        Check the bucket exists and the credentials can reach it.

        Returns:
            True if head_bucket succeeds, False otherwise
        """
        bucket = bucket or self.bucket
        try:
            self._client.head_bucket(Bucket=bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Bucket check failed for {bucket}: {e}")
            return False


def _identity_pool_credentials(config: ObjectStoreConfig) -> dict:
    """Fetch temporary credentials for an unauthenticated Cognito identity."""
    region = config.identity_pool_id.split(':', 1)[0] or config.region
    cognito = boto3.client('cognito-identity', region_name=region)
    identity = cognito.get_id(IdentityPoolId=config.identity_pool_id)
    response = cognito.get_credentials_for_identity(IdentityId=identity['IdentityId'])
    credentials = response['Credentials']
    return {
        'aws_access_key_id': credentials['AccessKeyId'],
        'aws_secret_access_key': credentials['SecretKey'],
        'aws_session_token': credentials['SessionToken'],
    }


def create_s3_client(config: ObjectStoreConfig) -> S3ObjectStoreClient:
    """
    Build an S3ObjectStoreClient from configuration.

    Credentials come from the explicit key pair if configured, else from a
    Cognito identity pool, else from boto3's default credential chain.

    Raises:
        CriticalInitError: If the client or its credentials cannot be created
    """
    credentials = {}
    try:
        if config.access_key_id:
            credentials = {
                'aws_access_key_id': config.access_key_id,
                'aws_secret_access_key': config.secret_access_key,
            }
        elif config.identity_pool_id:
            logger.info("Obtaining credentials from identity pool")
            credentials = _identity_pool_credentials(config)

        session = boto3.session.Session(region_name=config.region, **credentials)
        if session.get_credentials() is None:
            raise CriticalInitError(
                "No object store credentials found: configure access keys, "
                "an identity pool or an AWS profile"
            )

        client = session.client(
            's3',
            region_name=config.region,
            endpoint_url=config.endpoint_url,
            config=Config(
                signature_version='s3v4',
                connect_timeout=config.connect_timeout,
                read_timeout=config.read_timeout,
                retries={'mode': 'standard'},
            ),
        )
    except (ClientError, BotoCoreError, KeyError, ValueError) as e:
        raise CriticalInitError(f"Could not create object store client: {e}") from e

    logger.info(f"Object store client initialized for bucket: {config.bucket}")
    return S3ObjectStoreClient(client, config.bucket)


def client_factory_for(config: ObjectStoreConfig) -> Callable[[], S3ObjectStoreClient]:
    """Return a zero-argument factory that builds a client for ``config``."""
    def factory() -> S3ObjectStoreClient:
        return create_s3_client(config)
    return factory
