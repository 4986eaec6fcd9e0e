"""Inbound Mux webhook processing: verify, decode, reconcile.

The processor owns no module-level state: the signing secret travels in a
`WebhookContext` and the store/mirror in the `VideoReconciler`, both built per
request by the API dependencies (or directly by tests and the CLI).
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from prometheus_client import Counter

from videosync.api.errors import (
    ConfigurationError,
    DomainError,
    MalformedEventError,
    UnrecognizedEventError,
)
from videosync.config import settings
from videosync.observability.logging import get_logger
from videosync.services import mux_events
from videosync.services.mux_events import UnrecognizedEvent, decode_event
from videosync.services.mux_signature import DEFAULT_TOLERANCE_SECONDS, verify_mux_signature
from videosync.services.reconciler import ReconcileResult, VideoReconciler

logger = get_logger(__name__)

__all__ = ["WebhookContext", "MuxWebhookProcessor", "WEBHOOK_EVENTS"]

WEBHOOK_EVENTS = Counter(
    "videosync_webhook_events_total",
    "Mux webhook deliveries by event type and outcome",
    ["event_type", "outcome"],
)

_KNOWN_EVENT_TYPES = frozenset(
    {
        mux_events.ASSET_CREATED,
        mux_events.ASSET_READY,
        mux_events.ASSET_ERRORED,
        mux_events.ASSET_DELETED,
        mux_events.TRACK_READY,
    }
)


@dataclass(frozen=True)
class WebhookContext:
    secret: str
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS

    @classmethod
    def from_settings(cls) -> "WebhookContext":
        secret = (settings.mux_webhook_secret or "").strip()
        if not secret:
            raise ConfigurationError("Missing MUX_WEBHOOK_SECRET")
        return cls(secret=secret, tolerance_seconds=settings.mux_signature_tolerance_seconds)


def _event_label(event_type: str | None) -> str:
    return event_type if event_type in _KNOWN_EVENT_TYPES else "unknown"


class MuxWebhookProcessor:
    def __init__(self, context: WebhookContext, reconciler: VideoReconciler) -> None:
        self.context = context
        self.reconciler = reconciler

    async def process_async(self, body: bytes, signature: str | None) -> ReconcileResult:
        """Handle one delivery; raises a `DomainError` subclass on rejection."""
        event_type: str | None = None
        try:
            verify_mux_signature(
                body,
                signature,
                self.context.secret,
                tolerance_seconds=self.context.tolerance_seconds,
            )

            try:
                payload = json.loads(body)
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise MalformedEventError("Invalid JSON") from exc

            if settings.log_webhook_payloads:
                logger.info("mux_webhook_payload_raw", payload=payload)
            elif isinstance(payload, dict):
                logger.debug("mux_webhook_payload_received", keys=sorted(payload.keys()))

            event = decode_event(payload)
            event_type = event.type
            if isinstance(event, UnrecognizedEvent):
                logger.warning("mux_event_unrecognized", event_type=event.type)
                raise UnrecognizedEventError(event.type)

            result = await self.reconciler.apply_async(event)
        except DomainError as err:
            WEBHOOK_EVENTS.labels(event_type=_event_label(event_type), outcome=err.error).inc()
            raise

        WEBHOOK_EVENTS.labels(event_type=_event_label(event_type), outcome="applied").inc()
        return result
