"""
Blob storage backends for the snapshot cache.

Every backend offers the same async capability set:

    write(key, blob) -> location     overwrite the blob at key
    read(key)        -> bytes | None
    list(prefix)     -> [keys]

Backends:
- S3BlobBackend: durable object storage (boto3). Writes use the fixed key
  with no random suffix, so each write supersedes the previous one
- FileSystemBackend: one file per key under a root directory
- MemoryBackend: a dict, valid only for the lifetime of the process

No locking: concurrent writers race and the last write wins.
"""
import asyncio
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

import boto3
from botocore.exceptions import ClientError

from nhl_tracker.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class BlobBackend(Protocol):
    """Storage capability consumed by CacheStore."""

    name: str

    async def write(self, key: str, blob: bytes) -> str:
        ...

    async def read(self, key: str) -> Optional[bytes]:
        ...

    async def list(self, prefix: str) -> List[str]:
        ...


class MemoryBackend:
    """In-process blob store."""

    name = "memory"

    def __init__(self):
        self._blobs: Dict[str, bytes] = {}

    async def write(self, key: str, blob: bytes) -> str:
        self._blobs[key] = bytes(blob)
        return f"memory://{key}"

    async def read(self, key: str) -> Optional[bytes]:
        return self._blobs.get(key)

    async def list(self, prefix: str) -> List[str]:
        return sorted(k for k in self._blobs if k.startswith(prefix))


class FileSystemBackend:
    """
    Local filesystem blob store.

    Each write goes to its own uniquely named temporary sibling that is then
    renamed over the target, so a reader never sees a half-written snapshot
    and concurrent writers never share a temporary file.
    """

    name = "filesystem"

    def __init__(self, root_dir: str | Path):
        self.root = Path(root_dir)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Cache key escapes cache directory: {key!r}")
        return path

    def _write_sync(self, key: str, blob: bytes) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
            os.replace(tmp, path)
        except Exception:
            Path(tmp).unlink(missing_ok=True)
            raise
        return path.as_uri()

    def _read_sync(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def _list_sync(self, prefix: str) -> List[str]:
        if not self.root.exists():
            return []
        keys = (
            p.relative_to(self.root).as_posix()
            for p in self.root.rglob("*")
            if p.is_file() and not p.name.endswith(".tmp")
        )
        return sorted(k for k in keys if k.startswith(prefix))

    async def write(self, key: str, blob: bytes) -> str:
        return await asyncio.to_thread(self._write_sync, key, blob)

    async def read(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read_sync, key)

    async def list(self, prefix: str) -> List[str]:
        return await asyncio.to_thread(self._list_sync, prefix)


class S3BlobBackend:
    """
    S3 object storage backend.

    Args:
        bucket: Bucket name
        region: AWS region (optional; boto3 default chain otherwise)
        public_base_url: Base URL reported as the blob location after a write
            (e.g. a CDN in front of the bucket); defaults to s3://bucket/key
        client: Pre-built boto3 S3 client (tests pass a stub)
    """

    name = "s3"

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._s3 = client or boto3.client("s3", region_name=region)

    def _location(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"s3://{self.bucket}/{key}"

    def _write_sync(self, key: str, blob: bytes) -> str:
        self._s3.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=blob,
            ContentType="application/json",
        )
        return self._location(key)

    def _read_sync(self, key: str) -> Optional[bytes]:
        try:
            obj = self._s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404", "NotFound"):
                return None
            raise
        return obj["Body"].read()

    def _list_sync(self, prefix: str) -> List[str]:
        keys: List[str] = []
        paginator = self._s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return sorted(keys)

    async def write(self, key: str, blob: bytes) -> str:
        return await asyncio.to_thread(self._write_sync, key, blob)

    async def read(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read_sync, key)

    async def list(self, prefix: str) -> List[str]:
        return await asyncio.to_thread(self._list_sync, prefix)
