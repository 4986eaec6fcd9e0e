"""Object storage for mirrored video assets.

Two backends share one small async interface:
- local: files under STORAGE_LOCAL_DIR, served back by the /v1/media route.
- s3: any S3-compatible bucket. Enabled only when configured and when boto3
  is installed (`pip install 'videosync[s3]'`).

Keys are chosen by callers and are deterministic, so writing the same key
twice overwrites instead of accumulating copies.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Any, Protocol

from videosync.config import settings
from videosync.observability.logging import get_logger
from videosync.paths import get_repo_root

logger = get_logger(__name__)

__all__ = [
    "StoredObject",
    "UploadResult",
    "ObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
    "get_object_store",
    "normalize_key",
    "STAGING_DIR",
]


@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str


@dataclass(frozen=True)
class UploadResult:
    """Outcome of one upload: exactly one of `data` / `error` is set."""

    data: StoredObject | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.data is not None


class ObjectStore(Protocol):
    async def put_bytes_async(
        self, *, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> StoredObject: ...


def normalize_key(key: str) -> str:
    """Return a relative POSIX key, rejecting empty keys and parent traversal."""
    parts = [p for p in PurePosixPath(key.strip().lstrip("/")).parts if p not in {"", "."}]
    if not parts or ".." in parts:
        raise ValueError(f"Invalid object key: {key!r}")
    return "/".join(parts)


# Hidden directory under the local root holding in-flight writes; never served.
STAGING_DIR = ".incoming"


def _join_url(base: str, key: str) -> str:
    return f"{base.rstrip('/')}/{key}"


class LocalObjectStore:
    """Filesystem-backed store; URLs point at the public media route."""

    def __init__(self, root: Path, public_base_url: str) -> None:
        self.root = root
        self.public_base_url = public_base_url

    def path_for(self, key: str) -> Path:
        return self.root / normalize_key(key)

    async def put_bytes_async(
        self, *, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> StoredObject:
        key = normalize_key(key)
        path = self.path_for(key)

        def _write() -> None:
            staging = self.root / STAGING_DIR
            staging.mkdir(parents=True, exist_ok=True)
            path.parent.mkdir(parents=True, exist_ok=True)
            # One temp file per write so concurrent writers of a key never share it.
            with tempfile.NamedTemporaryFile(dir=staging, suffix=".part", delete=False) as tmp:
                tmp.write(data)
            try:
                os.replace(tmp.name, path)
            except OSError:
                os.unlink(tmp.name)
                raise

        await asyncio.to_thread(_write)
        return StoredObject(key=key, url=_join_url(self.public_base_url, key))


def _require_boto3() -> Any:
    try:
        import boto3  # type: ignore
    except ImportError as exc:  # pragma: no cover - depends on optional extra
        raise RuntimeError(
            "S3 backend requires boto3. Install with `pip install 'videosync[s3]'` "
            "or add boto3 to your environment."
        ) from exc
    return boto3


class S3ObjectStore:
    """S3 helper for object uploads with stable public URLs."""

    def __init__(self, *, bucket: str, public_base_url: str = "") -> None:
        boto3 = _require_boto3()
        endpoint_url = settings.storage_s3_endpoint_url or None
        region_name = settings.storage_s3_region or None
        self._client = boto3.client("s3", endpoint_url=endpoint_url, region_name=region_name)
        self.bucket = bucket
        if public_base_url:
            self.public_base_url = public_base_url
        elif endpoint_url:
            self.public_base_url = _join_url(endpoint_url, bucket)
        else:
            self.public_base_url = f"https://{bucket}.s3.amazonaws.com"

    async def put_bytes_async(
        self, *, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> StoredObject:
        key = normalize_key(key)

        def _upload() -> None:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )

        await asyncio.to_thread(_upload)
        return StoredObject(key=key, url=_join_url(self.public_base_url, key))


def _local_root() -> Path:
    root = Path(settings.storage_local_dir)
    if not root.is_absolute():
        root = get_repo_root() / root
    return root


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    if settings.storage_backend == "s3":
        logger.info("object_store_selected", backend="s3", bucket=settings.storage_s3_bucket)
        return S3ObjectStore(
            bucket=settings.storage_s3_bucket,
            public_base_url=settings.storage_s3_public_base_url,
        )
    root = _local_root()
    logger.info("object_store_selected", backend="local", root=str(root))
    return LocalObjectStore(root, settings.storage_public_base_url)
