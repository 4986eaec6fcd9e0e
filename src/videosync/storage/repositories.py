"""Data access repositories."""

from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from videosync.api.errors import StoreFailureError
from videosync.observability.logging import get_logger
from videosync.storage.models import CorrelationKey, MuxStatus, Video, VideoVisibility

logger = get_logger(__name__)

__all__ = ["VideoRepository"]

# Columns the webhook reconciler is allowed to write. Identity and ownership
# fields stay with the upload-initiation path.
RECONCILED_FIELDS = frozenset(
    {
        "mux_status",
        "mux_asset_id",
        "mux_playback_id",
        "mux_track_id",
        "mux_track_status",
        "thumbnail_url",
        "thumbnail_key",
        "preview_url",
        "preview_key",
        "duration",
    }
)


class VideoRepository:
    """Repository for Video records addressed by provider correlation ids."""

    def __init__(self, session: Session | AsyncSession):
        self.session = session

    def _build(
        self,
        *,
        mux_upload_id: str,
        title: str,
        description: str | None,
        user_id: str | None,
        visibility: VideoVisibility,
    ) -> Video:
        return Video(
            mux_upload_id=mux_upload_id,
            title=title,
            description=description,
            user_id=user_id,
            visibility=visibility.value,
            mux_status=MuxStatus.CREATED.value,
            duration=0,
        )

    def create(
        self,
        mux_upload_id: str,
        title: str = "Untitled",
        description: str | None = None,
        user_id: str | None = None,
        visibility: VideoVisibility = VideoVisibility.PRIVATE,
    ) -> Video:
        if isinstance(self.session, AsyncSession):
            raise TypeError("Use create_async() with AsyncSession")

        video = self._build(
            mux_upload_id=mux_upload_id,
            title=title,
            description=description,
            user_id=user_id,
            visibility=visibility,
        )
        self.session.add(video)
        self.session.flush()
        logger.info("video_created", video_id=str(video.id), upload_id=mux_upload_id)
        return video

    async def create_async(
        self,
        mux_upload_id: str,
        title: str = "Untitled",
        description: str | None = None,
        user_id: str | None = None,
        visibility: VideoVisibility = VideoVisibility.PRIVATE,
    ) -> Video:
        """Create the record for a freshly initiated upload."""
        if not isinstance(self.session, AsyncSession):
            raise TypeError("Use create() with Session")

        video = self._build(
            mux_upload_id=mux_upload_id,
            title=title,
            description=description,
            user_id=user_id,
            visibility=visibility,
        )
        self.session.add(video)
        await self.session.flush()
        logger.info("video_created", video_id=str(video.id), upload_id=mux_upload_id)
        return video

    def get(self, video_id: UUID) -> Optional[Video]:
        return self.session.get(Video, video_id)

    async def get_async(self, video_id: UUID) -> Optional[Video]:
        return await self.session.get(Video, video_id)

    def get_by_upload_id(self, upload_id: str) -> Optional[Video]:
        return self.session.execute(
            select(Video).where(Video.mux_upload_id == upload_id)
        ).scalar_one_or_none()

    async def get_by_upload_id_async(self, upload_id: str) -> Optional[Video]:
        result = await self.session.execute(select(Video).where(Video.mux_upload_id == upload_id))
        return result.scalar_one_or_none()

    def list(self, limit: int = 50) -> List[Video]:
        stmt = select(Video).order_by(Video.created_at.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars().all())

    async def list_async(self, limit: int = 50) -> List[Video]:
        stmt = select(Video).order_by(Video.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_where_async(
        self,
        key: CorrelationKey,
        value: str,
        *,
        unless_status: str | None = None,
        **fields: Any,
    ) -> int:
        """Apply `fields` to the video whose `key` column equals `value`.

        Issued as a single conditional UPDATE so concurrent deliveries rely on the
        store's row-level atomicity. When `unless_status` is given, a record
        already in that status is left alone. Returns the number of rows affected
        (0 or 1, the correlation columns are unique).
        """
        if not value:
            raise ValueError(f"Refusing update without a {key.value} value")
        unknown = set(fields) - RECONCILED_FIELDS
        if unknown:
            raise ValueError(f"Fields not writable by reconciliation: {sorted(unknown)}")

        column = getattr(Video, key.value)
        conditions = [column == value]
        if unless_status is not None:
            conditions.append(
                or_(Video.mux_status.is_(None), Video.mux_status != unless_status)
            )
        stmt = (
            update(Video)
            .where(*conditions)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("video_update_failed", key=key.value, value=value, error=str(exc))
            raise StoreFailureError("Failed to update video") from exc
        return int(result.rowcount or 0)

    async def delete_where_async(self, key: CorrelationKey, value: str) -> int:
        """Delete the video whose `key` column equals `value`; returns rows affected."""
        if not value:
            raise ValueError(f"Refusing delete without a {key.value} value")

        column = getattr(Video, key.value)
        stmt = delete(Video).where(column == value).execution_options(synchronize_session=False)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("video_delete_failed", key=key.value, value=value, error=str(exc))
            raise StoreFailureError("Failed to delete video") from exc
        return int(result.rowcount or 0)
