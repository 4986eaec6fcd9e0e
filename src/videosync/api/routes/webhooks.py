"""Mux video webhook handler.

Mux delivers asset lifecycle events (created, ready, errored, deleted, track
ready) at least once and in no guaranteed order. Each delivery is verified
against the raw request bytes, decoded into one event variant and applied to
the matching video record as a single conditional write.

Flow:
1. Upload initiated elsewhere → video row with mux_upload_id, status "created"
2. video.asset.created → asset id recorded
3. video.asset.ready → thumbnail/preview mirrored, playback id + duration set
4. video.asset.track.ready → track id/status recorded (looked up by asset id)
5. video.asset.deleted → row removed
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from videosync.api.dependencies_async import get_async_db_session, get_webhook_processor
from videosync.api.errors import StoreFailureError
from videosync.api.schemas import ErrorResponse, WebhookAck
from videosync.observability.logging import get_logger
from videosync.services.mux_signature import SIGNATURE_HEADER
from videosync.services.webhook_sync import MuxWebhookProcessor

logger = get_logger("api.webhooks")

router = APIRouter(prefix="/api/videos", tags=["webhooks"])


@router.post(
    "/webhook",
    response_model=WebhookAck,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def mux_webhook(
    request: Request,
    processor: MuxWebhookProcessor = Depends(get_webhook_processor),
    session: AsyncSession = Depends(get_async_db_session),
) -> Dict[str, Any]:
    """Receive a signed Mux event and reconcile it into the video table."""
    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    result = await processor.process_async(body, signature)
    # Acknowledge only once the write is durable; a 5xx makes Mux redeliver.
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        logger.error("mux_webhook_commit_failed", event_type=result.event_type, error=str(exc))
        raise StoreFailureError("Failed to persist video update") from exc

    logger.info(
        "mux_webhook_processed",
        event_type=result.event_type,
        key=result.key.value,
        correlation_id=result.correlation_id,
        rows_affected=result.rows_affected,
    )
    return {
        "status": "received",
        "event_type": result.event_type,
        "rows_affected": result.rows_affected,
    }


__all__ = ["router"]
