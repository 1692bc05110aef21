"""
S3 blob store for uploaded images.

Integration:
- Uses lms.settings for S3 configuration
- IRSA / instance roles when no access keys are configured
- Custom endpoint for MinIO or LocalStack

boto3 is synchronous; calls run in a worker thread so they do not block the
event loop.
"""

import asyncio
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ...models.core import ImageRef, UploadedFile
from ...settings import S3Settings, settings
from ..errors import BlobStoreError
from .base import make_file_id


def create_s3_client(config: S3Settings):
    """Create S3 client with instance-role or configured credentials."""
    s3_config: dict[str, Any] = {
        "region_name": config.region,
    }

    # Custom endpoint for MinIO/LocalStack
    if config.endpoint_url:
        s3_config["endpoint_url"] = config.endpoint_url

    # Access keys (not needed with instance roles)
    if config.access_key_id and config.secret_access_key:
        s3_config["aws_access_key_id"] = config.access_key_id
        s3_config["aws_secret_access_key"] = config.secret_access_key

    s3_config["use_ssl"] = config.use_ssl

    return boto3.client("s3", **s3_config)


class S3BlobStore:
    """
    S3 storage for images.

    Objects are keyed '<folder>/<uuid>.<ext>'; the key is the file_id.
    """

    def __init__(self, config: S3Settings | None = None, client=None):
        self.config = config or settings.s3
        self.bucket = self.config.bucket_name
        self._client = client or create_s3_client(self.config)

    def _public_url(self, key: str) -> str:
        if self.config.public_base_url:
            return f"{self.config.public_base_url.rstrip('/')}/{key}"
        if self.config.endpoint_url:
            return f"{self.config.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.config.region}.amazonaws.com/{key}"

    def _put(self, key: str, file: UploadedFile) -> str:
        self._client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=file.content,
            ContentType=file.mime_type,
        )
        return self._client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.config.presign_expiry,
        )

    async def upload_file(self, file: UploadedFile, folder: str = "") -> ImageRef:
        key = make_file_id(file, folder)
        try:
            download_link = await asyncio.to_thread(self._put, key, file)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload s3://{self.bucket}/{key}: {e}")
            raise BlobStoreError(f"Failed to upload {file.original_name}") from e

        logger.info(f"Uploaded s3://{self.bucket}/{key} ({file.size} bytes)")
        return ImageRef(
            file_id=key,
            shareable_link=self._public_url(key),
            download_link=download_link,
        )

    async def delete_file(self, file_id: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.delete_object, Bucket=self.bucket, Key=file_id
            )
        except (ClientError, BotoCoreError) as e:
            raise BlobStoreError(f"Failed to delete s3://{self.bucket}/{file_id}") from e
        logger.info(f"Deleted s3://{self.bucket}/{file_id}")
