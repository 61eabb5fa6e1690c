import asyncio
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.exceptions import StorageError
from app.services.storage.base import BlobStorage

logger = logging.getLogger(__name__)


class S3BlobStorage(BlobStorage):
    """S3-compatible object storage (AWS S3, Supabase Storage, MinIO).

    boto3 is synchronous, so calls run in a worker thread.
    """

    def __init__(
        self,
        bucket: str,
        access_key: str,
        secret_key: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        public_base_url: str | None = None,
        client=None,
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url
        self.client = client or boto3.client(
            "s3",
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region or None,
            endpoint_url=endpoint_url or None,
        )

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload {key}: {exc}") from exc
        logger.info(f"Uploaded {len(data)} bytes to s3://{self.bucket}/{key}")
        return key

    def get_public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc
