# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Object storage for uploaded audio files.

Two backends: any S3-compatible bucket (Supabase Storage, Cloudflare R2, Backblaze B2,
AWS S3) through boto3, and a local directory served by the app under /media.
Blocking calls run in the threadpool.
"""

import logging
import re
import uuid
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path, PurePosixPath
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from mymusicapi_server.config import settings
from mymusicapi_server.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

LOCAL_MEDIA_PREFIX = "/media"

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def make_storage_key(filename: str) -> str:
    """Unique, URL-safe storage key that keeps the original name readable."""
    name = PurePosixPath(filename.replace("\\", "/")).name
    safe = _UNSAFE_KEY_CHARS.sub("_", name).strip("._") or "track"
    return f"{uuid.uuid4().hex[:12]}-{safe}"


class ObjectStore(ABC):
    """Blob store addressed by key."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store data under key and return its public URL."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Publicly fetchable URL for key."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Raises StorageError on failure."""

    async def presign_upload(self, key: str, content_type: str) -> str:
        """URL the client can PUT the file to directly."""
        raise ValidationError("Direct upload is not supported by this storage backend")


class S3ObjectStore(ObjectStore):
    """S3-compatible bucket via boto3."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        region: str = "auto",
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        public_base_url: str | None = None,
        presign_expires: int = 3600,
    ) -> None:
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.public_base_url = (public_base_url or "").rstrip("/")
        self.presign_expires = presign_expires
        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    def public_url(self, key: str) -> str:
        safe_key = quote(key, safe="/")
        if self.public_base_url:
            return f"{self.public_base_url}/{self.bucket}/{safe_key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{safe_key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{safe_key}"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Storage upload failed: {e}") from e
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Storage delete failed: {e}") from e

    async def presign_upload(self, key: str, content_type: str) -> str:
        try:
            return await run_in_threadpool(
                self.client.generate_presigned_url,
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=self.presign_expires,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not create upload URL: {e}") from e


class LocalObjectStore(ObjectStore):
    """Files in a local directory, served by the app under /media."""

    def __init__(self, base_path: Path, base_url: str) -> None:
        self.base_path = Path(base_path).expanduser().absolute()
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if not path.is_relative_to(self.base_path.resolve()):
            raise StorageError(f"Storage key outside media directory: {key}")
        return path

    def public_url(self, key: str) -> str:
        return f"{self.base_url}{LOCAL_MEDIA_PREFIX}/{quote(key, safe='/')}"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)

        def write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        try:
            await run_in_threadpool(write)
        except OSError as e:
            raise StorageError(f"Storage upload failed: {e}") from e
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            await run_in_threadpool(path.unlink)
        except OSError as e:
            raise StorageError(f"Storage delete failed: {e}") from e


@lru_cache
def _configured_store() -> ObjectStore:
    backend = (settings.storage_backend or "s3").strip().lower()
    if backend == "local":
        return LocalObjectStore(settings.local_storage_path, settings.base_url)
    if backend != "s3":
        logger.warning("Unknown STORAGE_BACKEND %r, using s3", settings.storage_backend)
    return S3ObjectStore(
        bucket=settings.storage_bucket,
        endpoint_url=settings.s3_endpoint_url,
        region=settings.s3_region,
        access_key_id=settings.s3_access_key_id,
        secret_access_key=settings.s3_secret_access_key,
        public_base_url=settings.storage_public_url,
        presign_expires=settings.presign_expire_seconds,
    )


def get_object_store() -> ObjectStore:
    """Dependency returning the configured object store."""
    return _configured_store()
