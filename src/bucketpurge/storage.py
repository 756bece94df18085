"""Object storage capability and its S3-compatible implementation."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Protocol

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .errors import StorageUnavailableError


@dataclass(frozen=True)
class ObjectDescriptor:
    """Snapshot of one object's metadata as returned by a listing."""

    key: str
    size: int
    last_modified: datetime


@dataclass(frozen=True)
class ListingError:
    """A listing entry that carried an error instead of metadata."""

    message: str
    key: str | None = None


class ObjectStore(Protocol):
    def list_objects(self, bucket: str) -> AsyncIterator[ObjectDescriptor | ListingError]:
        """Recursively list a bucket. Each call starts a fresh listing."""
        ...

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete one object, raising on failure."""
        ...

    async def check_bucket(self, bucket: str) -> None:
        """Raise StorageUnavailableError if the bucket cannot be reached."""
        ...


def _descriptor_from_entry(entry: dict) -> ObjectDescriptor | ListingError:
    key = entry.get("Key")
    size = entry.get("Size")
    last_modified = entry.get("LastModified")
    if key is None or size is None or not isinstance(last_modified, datetime):
        return ListingError(message=f"Incomplete object metadata: {sorted(entry)}", key=key)
    if last_modified.tzinfo is None:
        last_modified = last_modified.replace(tzinfo=timezone.utc)
    return ObjectDescriptor(key=key, size=int(size), last_modified=last_modified)


class S3ObjectStore:
    """
    S3 / MinIO object store backed by a boto3 client.

    boto3 is blocking, so every call runs on a dedicated thread pool sized for
    the purge workers plus the listing.
    """

    def __init__(self, client, max_workers: int = 10):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.client = client
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="bucketpurge")

    @classmethod
    def from_config(cls, storage_config, max_workers: int = 10) -> "S3ObjectStore":
        """
        Build a store from a StorageConfig.

        Args:
            storage_config: Endpoint, credentials and TLS settings
            max_workers: Size of the thread pool running boto3 calls

        Raises:
            StorageUnavailableError: If the client cannot be created
        """
        try:
            client = boto3.client(
                "s3",
                endpoint_url=storage_config.endpoint_url,
                aws_access_key_id=storage_config.access_key_id or None,
                aws_secret_access_key=storage_config.secret_access_key or None,
                region_name=storage_config.region,
                config=BotoConfig(
                    signature_version="s3v4",
                    s3={"addressing_style": "path"},
                    # Failed deletions are logged and skipped, never retried
                    retries={"max_attempts": 1, "mode": "standard"},
                    max_pool_connections=max_workers,
                ),
            )
        except (BotoCoreError, ValueError) as e:
            raise StorageUnavailableError(f"Cannot create storage client: {e}") from e
        return cls(client, max_workers=max_workers)

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, lambda: func(*args, **kwargs))

    async def check_bucket(self, bucket: str) -> None:
        try:
            await self._run(self.client.head_bucket, Bucket=bucket)
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(f"Cannot access bucket {bucket!r}: {e}") from e

    async def list_objects(self, bucket: str) -> AsyncIterator[ObjectDescriptor | ListingError]:
        """
        Yield every object in the bucket, one page fetched at a time.

        A failure on the first page means the listing is unavailable and is
        raised. A failure on a later page is yielded as a ListingError and
        ends the stream, since the continuation token is lost with it.
        """
        paginator = self.client.get_paginator("list_objects_v2")
        pages = iter(paginator.paginate(Bucket=bucket))
        first_page = True

        while True:
            try:
                page = await self._run(next, pages, None)
            except (BotoCoreError, ClientError) as e:
                if first_page:
                    raise StorageUnavailableError(f"Cannot list bucket {bucket!r}: {e}") from e
                yield ListingError(message=str(e))
                return

            if page is None:
                return
            first_page = False

            for entry in page.get("Contents", []):
                yield _descriptor_from_entry(entry)

    async def delete_object(self, bucket: str, key: str) -> None:
        await self._run(self.client.delete_object, Bucket=bucket, Key=key)

    def close(self) -> None:
        self.executor.shutdown(wait=False)
