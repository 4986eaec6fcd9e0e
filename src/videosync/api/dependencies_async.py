"""Async DB/session dependencies (for async handlers)."""

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from videosync.config import settings
from videosync.services.asset_mirror import AssetMirror
from videosync.services.reconciler import VideoReconciler
from videosync.services.webhook_sync import MuxWebhookProcessor, WebhookContext
from videosync.storage.database import get_async_session_factory
from videosync.storage.object_store import get_object_store
from videosync.storage.repositories import VideoRepository


async def get_async_db_session() -> AsyncGenerator[AsyncSession, None]:
    SessionLocal = get_async_session_factory()
    session = SessionLocal()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def get_async_video_repo(
    session: AsyncSession = Depends(get_async_db_session),
) -> VideoRepository:
    return VideoRepository(session)


def get_asset_mirror() -> AssetMirror | None:
    if not settings.mirror_enabled:
        return None
    return AssetMirror(get_object_store())


def get_webhook_context() -> WebhookContext:
    return WebhookContext.from_settings()


async def get_webhook_processor(
    context: WebhookContext = Depends(get_webhook_context),
    repo: VideoRepository = Depends(get_async_video_repo),
    mirror: AssetMirror | None = Depends(get_asset_mirror),
) -> MuxWebhookProcessor:
    return MuxWebhookProcessor(context, VideoReconciler(repo, mirror))
