"""
Object storage client for uploaded material files.

S3-compatible bucket accessed through boto3. Objects are written with a
public-read URL derived from a configured base URL, so records can store
the URL directly.
"""

import logging
from typing import BinaryIO

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

BOTO_CONFIG = BotoConfig(
    connect_timeout=10,
    read_timeout=60,
    retries={"max_attempts": 1},
)


class StorageError(Exception):
    """Raised when an object storage call fails."""


class BlobStore:
    """Put and delete objects in a single bucket."""

    def __init__(
        self,
        bucket: str,
        public_base_url: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        client=None,
    ):
        """
        Args:
            bucket: Bucket name
            public_base_url: Base URL objects are served from (no trailing slash needed)
            region: Bucket region
            endpoint_url: Custom endpoint for S3-compatible providers
            client: Pre-built boto3 S3 client (tests)

        Raises:
            ValueError: If bucket or public_base_url is empty
        """
        if not bucket:
            raise ValueError("bucket is required")
        if not public_base_url:
            raise ValueError("public_base_url is required")

        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self._client = client or boto3.client(
            "s3",
            region_name=region or None,
            endpoint_url=endpoint_url or None,
            config=BOTO_CONFIG,
        )

    def url_for(self, key: str) -> str:
        """Public URL of an object key."""
        return f"{self.public_base_url}/{key}"

    def put(self, key: str, stream: BinaryIO, content_type: str) -> str:
        """
        Upload a stream under key.

        Returns:
            Public URL of the stored object.

        Raises:
            StorageError: On any storage failure
        """
        try:
            self._client.upload_fileobj(
                stream,
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Upload of {key} to {self.bucket} failed: {e}")
            raise StorageError(f"Upload failed: {e}")

        logger.info(f"Stored object {key} in {self.bucket}")
        return self.url_for(key)

    def delete(self, key: str) -> None:
        """
        Delete an object. Deleting a missing key is not an error.

        Raises:
            StorageError: On any storage failure
        """
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Delete of {key} from {self.bucket} failed: {e}")
            raise StorageError(f"Delete failed: {e}")

        logger.info(f"Deleted object {key} from {self.bucket}")
