"""SQLAlchemy database models for videosync."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import uuid
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import Column, DateTime, Integer, String, Text, TypeDecorator
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import declarative_base


def _utc_now() -> datetime:
    """Return a tz-naive UTC timestamp for TIMESTAMP WITHOUT TIME ZONE columns.

    Using tz-aware values with asyncpg against TIMESTAMP WITHOUT TIME ZONE columns
    triggers "can't subtract offset-naive and offset-aware datetimes", so we keep
    these fields naive and treat them as UTC by convention.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GUID(TypeDecorator[UUID]):
    """Platform-independent GUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as String(36).
    This enables unit tests with SQLite while using native UUIDs in production PostgreSQL.
    """

    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        else:
            return dialect.type_descriptor(String(36))

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        elif dialect.name == "postgresql":
            return value if isinstance(value, uuid.UUID) else uuid.UUID(value)
        else:
            return str(value) if isinstance(value, uuid.UUID) else value

    def process_result_value(self, value: Any, dialect: Any) -> UUID | None:
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


Base = declarative_base()

__all__ = [
    "Base",
    "GUID",
    "Video",
    "MuxStatus",
    "VideoVisibility",
    "CorrelationKey",
]


class MuxStatus(str, Enum):
    """Well-known provider lifecycle statuses.

    The column stores whatever the provider reports; these are the values the
    service itself assigns or compares against.
    """

    CREATED = "created"
    PREPARING = "preparing"
    READY = "ready"
    ERRORED = "errored"


class VideoVisibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class CorrelationKey(str, Enum):
    """External identifiers a webhook event can address a video by."""

    UPLOAD_ID = "mux_upload_id"
    ASSET_ID = "mux_asset_id"


class Video(Base):
    """Uploaded video record, reconciled from provider webhooks."""

    __tablename__ = "videos"

    id = Column(
        GUID(),
        primary_key=True,
        default=uuid.uuid4,
    )
    title = Column(String(255), nullable=False, default="Untitled")
    description = Column(Text, nullable=True)
    user_id = Column(String(128), nullable=True, index=True)
    visibility = Column(String(16), nullable=False, default=VideoVisibility.PRIVATE.value)

    mux_status = Column(String(32), nullable=True)
    mux_asset_id = Column(String(128), nullable=True, unique=True)
    mux_upload_id = Column(String(128), nullable=True, unique=True)
    mux_playback_id = Column(String(128), nullable=True, unique=True)
    mux_track_id = Column(String(128), nullable=True, unique=True)
    mux_track_status = Column(String(32), nullable=True)

    thumbnail_url = Column(Text, nullable=True)
    thumbnail_key = Column(Text, nullable=True)
    preview_url = Column(Text, nullable=True)
    preview_key = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=_utc_now)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert video to dictionary."""
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "user_id": self.user_id,
            "visibility": self.visibility,
            "mux_status": self.mux_status,
            "mux_asset_id": self.mux_asset_id,
            "mux_upload_id": self.mux_upload_id,
            "mux_playback_id": self.mux_playback_id,
            "mux_track_id": self.mux_track_id,
            "mux_track_status": self.mux_track_status,
            "thumbnail_url": self.thumbnail_url,
            "thumbnail_key": self.thumbnail_key,
            "preview_url": self.preview_url,
            "preview_key": self.preview_key,
            "duration": self.duration,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
