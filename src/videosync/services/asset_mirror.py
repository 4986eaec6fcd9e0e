"""Mirror transient Mux CDN images into owned object storage."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Sequence

import httpx

from videosync.api.errors import MirrorFailureError
from videosync.config import settings
from videosync.observability.logging import get_logger
from videosync.services import mux_urls
from videosync.storage.object_store import ObjectStore, StoredObject, UploadResult

logger = get_logger(__name__)

__all__ = ["MirrorSource", "MirroredAssets", "AssetMirror"]


@dataclass(frozen=True)
class MirrorSource:
    url: str
    key: str
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class MirroredAssets:
    thumbnail: StoredObject
    preview: StoredObject


class AssetMirror:
    """Fetch remote media and store copies under deterministic keys.

    Keys are derived from the playback id, so redelivered events overwrite the
    same objects instead of accumulating new ones.
    """

    def __init__(
        self,
        store: ObjectStore,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float | None = None,
        max_bytes: int | None = None,
        prefix: str | None = None,
    ) -> None:
        self.store = store
        self._client = client
        self.timeout = httpx.Timeout(
            timeout_seconds if timeout_seconds is not None else settings.mirror_fetch_timeout_seconds
        )
        self.max_bytes = max_bytes if max_bytes is not None else settings.mirror_max_bytes
        self.prefix = (prefix if prefix is not None else settings.storage_prefix).strip("/")

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            yield client

    def _key(self, playback_id: str, filename: str) -> str:
        if self.prefix:
            return f"{self.prefix}/{playback_id}/{filename}"
        return f"{playback_id}/{filename}"

    def sources_for(self, playback_id: str) -> list[MirrorSource]:
        return [
            MirrorSource(
                url=mux_urls.thumbnail_url(playback_id),
                key=self._key(playback_id, mux_urls.THUMBNAIL_FILENAME),
                content_type="image/jpeg",
            ),
            MirrorSource(
                url=mux_urls.preview_url(playback_id),
                key=self._key(playback_id, mux_urls.PREVIEW_FILENAME),
                content_type="image/gif",
            ),
        ]

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> bytes:
        async with client.stream("GET", url, timeout=self.timeout) as response:
            response.raise_for_status()
            declared = response.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > self.max_bytes:
                raise ValueError(f"Remote asset too large ({declared} bytes)")
            chunks: list[bytes] = []
            size = 0
            async for chunk in response.aiter_bytes():
                size += len(chunk)
                if size > self.max_bytes:
                    raise ValueError(f"Remote asset exceeds {self.max_bytes} bytes")
                chunks.append(chunk)
        return b"".join(chunks)

    async def _upload_one(self, client: httpx.AsyncClient, source: MirrorSource) -> UploadResult:
        try:
            data = await self._fetch(client, source.url)
            stored = await self.store.put_bytes_async(
                key=source.key, data=data, content_type=source.content_type
            )
        except Exception as exc:  # each failure is reported through UploadResult
            logger.warning(
                "asset_mirror_upload_failed",
                url=source.url,
                key=source.key,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return UploadResult(error=str(exc) or type(exc).__name__)
        logger.info("asset_mirrored", key=stored.key, bytes=len(data))
        return UploadResult(data=stored)

    async def upload_from_urls_async(self, sources: Sequence[MirrorSource]) -> list[UploadResult]:
        """Fetch and store each source concurrently; one result per source, in order."""
        async with self._http() as client:
            results = await asyncio.gather(*(self._upload_one(client, s) for s in sources))
        return list(results)

    async def mirror_playback_async(self, playback_id: str) -> MirroredAssets:
        """Mirror the thumbnail and animated preview for `playback_id`.

        Both copies succeed or the call raises `MirrorFailureError`. A copy that
        did succeed is left in place: its key is the one a previous or later
        delivery for the same playback id writes, and records may point at it.
        """
        thumbnail, preview = await self.upload_from_urls_async(self.sources_for(playback_id))
        if not (thumbnail.ok and preview.ok):
            logger.error(
                "asset_mirror_failed",
                playback_id=playback_id,
                thumbnail_error=thumbnail.error,
                preview_error=preview.error,
            )
            raise MirrorFailureError("Failed to upload files")
        return MirroredAssets(thumbnail=thumbnail.data, preview=preview.data)
