"""Apply decoded Mux events to video records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from videosync.observability.logging import get_logger
from videosync.services.asset_mirror import AssetMirror
from videosync.services.mux_events import (
    AssetCreated,
    AssetDeleted,
    AssetErrored,
    AssetReady,
    MuxEvent,
    TrackReady,
)
from videosync.storage.models import CorrelationKey, MuxStatus
from videosync.storage.repositories import VideoRepository

logger = get_logger(__name__)

__all__ = ["ReconcileResult", "VideoReconciler"]


@dataclass(frozen=True)
class ReconcileResult:
    event_type: str
    key: CorrelationKey
    correlation_id: str
    rows_affected: int


def _present(**fields: Any) -> dict[str, Any]:
    """Drop fields the provider did not report so they are left untouched."""
    return {name: value for name, value in fields.items() if value is not None}


class VideoReconciler:
    """Map each event variant to one conditional update or delete.

    Every transition targets a single record by correlation id and is a no-op
    when no record matches, so late, early, and duplicate deliveries settle
    without errors.
    """

    def __init__(self, repo: VideoRepository, mirror: AssetMirror | None = None) -> None:
        self.repo = repo
        self.mirror = mirror

    async def apply_async(self, event: MuxEvent) -> ReconcileResult:
        if isinstance(event, AssetCreated):
            key, value = CorrelationKey.UPLOAD_ID, event.upload_id
            rows = await self._asset_created(event)
        elif isinstance(event, AssetReady):
            key, value = CorrelationKey.UPLOAD_ID, event.upload_id
            rows = await self._asset_ready(event)
        elif isinstance(event, AssetErrored):
            key, value = CorrelationKey.UPLOAD_ID, event.upload_id
            rows = await self.repo.update_where_async(
                key, value, mux_status=event.status or MuxStatus.ERRORED.value
            )
        elif isinstance(event, AssetDeleted):
            key, value = CorrelationKey.UPLOAD_ID, event.upload_id
            rows = await self.repo.delete_where_async(key, value)
        elif isinstance(event, TrackReady):
            key, value = CorrelationKey.ASSET_ID, event.asset_id
            rows = await self._track_ready(event)
        else:
            raise TypeError(f"Unsupported event: {type(event).__name__}")

        bound = logger.bind(event_type=event.type, key=key.value, correlation_id=value)
        if rows:
            bound.info("video_reconciled", rows_affected=rows)
        else:
            bound.info("video_reconcile_noop", reason="no_matching_record")
        return ReconcileResult(
            event_type=event.type, key=key, correlation_id=value, rows_affected=rows
        )

    async def _asset_created(self, event: AssetCreated) -> int:
        fields = _present(mux_asset_id=event.asset_id, mux_status=event.status)
        if not fields:
            return 0
        # "created" can arrive after "ready"; never move a ready record backwards.
        return await self.repo.update_where_async(
            CorrelationKey.UPLOAD_ID,
            event.upload_id,
            unless_status=MuxStatus.READY.value,
            **fields,
        )

    async def _asset_ready(self, event: AssetReady) -> int:
        existing = await self.repo.get_by_upload_id_async(event.upload_id)
        if existing is None:
            return 0

        fields = _present(
            mux_playback_id=event.playback_id,
            mux_status=event.status or MuxStatus.READY.value,
            mux_asset_id=event.asset_id,
            duration=event.duration_ms,
        )
        if self.mirror is not None:
            # Raises before any field is written.
            assets = await self.mirror.mirror_playback_async(event.playback_id)
            fields.update(
                thumbnail_url=assets.thumbnail.url,
                thumbnail_key=assets.thumbnail.key,
                preview_url=assets.preview.url,
                preview_key=assets.preview.key,
            )
        return await self.repo.update_where_async(CorrelationKey.UPLOAD_ID, event.upload_id, **fields)

    async def _track_ready(self, event: TrackReady) -> int:
        fields = _present(mux_track_id=event.track_id, mux_track_status=event.status)
        if not fields:
            return 0
        return await self.repo.update_where_async(CorrelationKey.ASSET_ID, event.asset_id, **fields)
