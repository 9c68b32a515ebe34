"""Object storage adapter (S3 API) used for the inbox and archive folders."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sheetbridge.errors import StorageLifecycleError

__all__ = [
    "StoredObject",
    "ObjectStore",
    "S3ObjectStore",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    key: str
    updated: datetime
    size: int = 0


class ObjectStore(Protocol):
    """Operations the pipeline needs from a bucket."""

    bucket: str

    def list_objects(self, prefix: str) -> list[StoredObject]: ...

    def download(self, key: str, dest: Path) -> Path: ...

    def upload(self, local_path: Path, key: str, content_type: str = "application/json") -> str: ...

    def exists(self, key: str) -> bool: ...

    def move(self, src: str, dst: str) -> None: ...

    def delete(self, key: str) -> None: ...


class S3ObjectStore:
    """ObjectStore backed by any S3-compatible endpoint.

    Google Cloud Storage is reachable through its interoperability endpoint
    (``https://storage.googleapis.com``) with HMAC credentials.
    """

    def __init__(self, bucket: str, region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self.bucket = bucket
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)

    def list_objects(self, prefix: str) -> list[StoredObject]:
        try:
            objects: list[StoredObject] = []
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    objects.append(StoredObject(key=obj["Key"], updated=obj["LastModified"], size=obj.get("Size", 0)))
            logger.debug("listed %d objects under %s", len(objects), prefix)
            return objects
        except (ClientError, BotoCoreError) as exc:
            raise StorageLifecycleError(f"S3 list failed for prefix={prefix!r}: {exc}", prefix) from exc

    def download(self, key: str, dest: Path) -> Path:
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            self._client.download_file(self.bucket, key, str(dest))
            return dest
        except (ClientError, BotoCoreError) as exc:
            raise StorageLifecycleError(f"S3 download failed for {key!r}: {exc}", key) from exc

    def upload(self, local_path: Path, key: str, content_type: str = "application/json") -> str:
        try:
            self._client.upload_file(
                str(local_path), self.bucket, key, ExtraArgs={"ContentType": content_type},
            )
            return key
        except (ClientError, BotoCoreError) as exc:
            raise StorageLifecycleError(f"S3 upload failed for {key!r}: {exc}", key) from exc

    def exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageLifecycleError(f"S3 head failed for {key!r}: {exc}", key) from exc

    def move(self, src: str, dst: str) -> None:
        try:
            self._client.copy_object(
                Bucket=self.bucket,
                CopySource={"Bucket": self.bucket, "Key": src},
                Key=dst,
            )
            self._client.delete_object(Bucket=self.bucket, Key=src)
        except (ClientError, BotoCoreError) as exc:
            raise StorageLifecycleError(f"S3 move {src!r} -> {dst!r} failed: {exc}", src) from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageLifecycleError(f"S3 delete failed for {key!r}: {exc}", key) from exc
