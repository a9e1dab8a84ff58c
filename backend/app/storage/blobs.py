"""
Blob storage for uploaded documents, organised by lifecycle folder
(``pending/{user_id}/...`` and ``approved/{user_id}/...``).

S3-compatible backends (Supabase Storage, Cloudflare R2, AWS S3, MinIO) go
through boto3; the in-memory store backs tests and local development.
"""

import asyncio
import logging
import mimetypes
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from backend.app.config import Settings
from backend.app.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class BlobStore(Protocol):
    """Binary store keyed by path."""

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> None:
        """Store bytes at path (overwrites)."""
        ...

    async def download(self, path: str) -> bytes:
        """Fetch bytes at path.

        Raises:
            NotFoundError: If nothing is stored at path
        """
        ...

    async def remove(self, paths: list[str]) -> None:
        """Delete paths; missing paths are ignored."""
        ...

    async def exists(self, path: str) -> bool:
        """Check whether path holds a blob."""
        ...


class InMemoryBlobStore:
    """Dict-backed BlobStore."""

    def __init__(self, blobs: dict[str, bytes] | None = None) -> None:
        self.blobs: dict[str, bytes] = dict(blobs or {})

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> None:
        self.blobs[path] = data

    async def download(self, path: str) -> bytes:
        try:
            return self.blobs[path]
        except KeyError:
            raise NotFoundError(f"Blob not found: {path}") from None

    async def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.blobs.pop(path, None)

    async def exists(self, path: str) -> bool:
        return path in self.blobs


class S3BlobStore:
    """BlobStore over an S3-compatible bucket.

    boto3 is synchronous, so every call runs in a worker thread.
    """

    def __init__(self, client: object, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3BlobStore":
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url or None,
            aws_access_key_id=settings.s3_access_key_id or None,
            aws_secret_access_key=settings.s3_secret_access_key.get_secret_value() or None,
            region_name=settings.s3_region or "us-east-1",
            config=Config(signature_version="s3v4"),
        )
        return cls(client, settings.s3_bucket_name)

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> None:
        content_type = content_type or mimetypes.guess_type(path)[0] or "application/octet-stream"
        try:
            await asyncio.to_thread(
                self._client.put_object,  # type: ignore[attr-defined]
                Bucket=self._bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Upload failed for {path}: {e}") from e
        logger.info("Uploaded %s (%d bytes)", path, len(data))

    async def download(self, path: str) -> bytes:
        try:
            response = await asyncio.to_thread(
                self._client.get_object,  # type: ignore[attr-defined]
                Bucket=self._bucket,
                Key=path,
            )
            return await asyncio.to_thread(response["Body"].read)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                raise NotFoundError(f"Blob not found: {path}") from e
            raise StorageError(f"Download failed for {path}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Download failed for {path}: {e}") from e

    async def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        try:
            await asyncio.to_thread(
                self._client.delete_objects,  # type: ignore[attr-defined]
                Bucket=self._bucket,
                Delete={"Objects": [{"Key": p} for p in paths], "Quiet": True},
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Remove failed for {paths}: {e}") from e

    async def exists(self, path: str) -> bool:
        try:
            await asyncio.to_thread(
                self._client.head_object,  # type: ignore[attr-defined]
                Bucket=self._bucket,
                Key=path,
            )
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise StorageError(f"Lookup failed for {path}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Lookup failed for {path}: {e}") from e
