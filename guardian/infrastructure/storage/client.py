"""
Object storage client for uploaded media.

Talks to any S3-compatible object store through boto3. The default
endpoint is Google Cloud Storage's XML interoperability API (HMAC keys),
and stored objects are addressed as gs://<bucket>/<key>. Pointing the
endpoint at R2, MinIO or S3 only needs different settings.

Mock mode stores objects in memory, enabling API testing without
provisioning actual object storage.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from guardian.core.errors import PersistenceError

logger = logging.getLogger(__name__)


class StorageError(PersistenceError):
    """An upload or URI lookup against the bucket failed."""


@dataclass
class StorageConfig:
    """
    Configuration for S3-compatible storage.

    `uri_scheme` only affects the URIs recorded alongside analyses;
    requests always go to `endpoint_url`.
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: str = "https://storage.googleapis.com"
    region: str = "auto"
    uri_scheme: str = "gs"


class StorageClient(Protocol):
    """
    Where uploaded media ends up. Keys are bucket-relative paths such as
    `videos/<uuid>-clip.mp4`.
    """

    async def upload_media(self, data: bytes, key: str, content_type: str) -> str:
        """Upload bytes under key and return the key."""
        ...

    def uri_for(self, key: str) -> str:
        """Return the canonical URI for a stored key."""
        ...


class S3StorageClient:
    """
    S3-compatible object storage client.

    boto3 blocks, so each put_object call is pushed to a worker thread.
    """

    def __init__(self, config: StorageConfig) -> None:
        import boto3
        from botocore.config import Config

        self._config = config

        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
            retries={'max_attempts': 1},
        )

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized object storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    async def upload_media(self, data: bytes, key: str, content_type: str) -> str:
        """Upload an object in a single PUT (no resumable upload)."""
        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self._config.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except Exception as e:
            logger.error(
                "Failed to upload media",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}") from e

        logger.info(
            "Uploaded media",
            extra={"key": key, "size_bytes": len(data)}
        )

        return key

    def uri_for(self, key: str) -> str:
        return f"{self._config.uri_scheme}://{self._config.bucket_name}/{key}"


# ---------------------------------------------------------------------------
# In-memory stand-in
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    Keeps uploaded objects in a dict. URIs still name the configured bucket.
    """

    def __init__(self, bucket_name: str = "mock-bucket", uri_scheme: str = "gs") -> None:
        # {key: (bytes, content_type)}
        self.objects: dict[str, tuple[bytes, str]] = {}
        self._bucket_name = bucket_name
        self._uri_scheme = uri_scheme
        logger.info("Storage mock mode: objects kept in memory")

    async def upload_media(self, data: bytes, key: str, content_type: str) -> str:
        self.objects[key] = (data, content_type)

        logger.debug(
            "Stored media in mock storage",
            extra={"key": key, "size_bytes": len(data)}
        )

        return key

    def uri_for(self, key: str) -> str:
        return f"{self._uri_scheme}://{self._bucket_name}/{key}"


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Pick the boto3-backed client, or the in-memory one when mock_mode is set.

    config is mandatory outside mock mode.
    """
    if mock_mode:
        if config is not None:
            return MockStorageClient(config.bucket_name, config.uri_scheme)
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
