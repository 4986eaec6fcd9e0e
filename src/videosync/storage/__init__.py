"""videosync storage module - database models, repositories and object storage."""

from videosync.storage.database import get_engine, get_session, get_session_factory, init_db
from videosync.storage.models import Base, CorrelationKey, MuxStatus, Video, VideoVisibility
from videosync.storage.repositories import VideoRepository

__all__ = [
    "Base",
    "Video",
    "MuxStatus",
    "VideoVisibility",
    "CorrelationKey",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
    "VideoRepository",
]
