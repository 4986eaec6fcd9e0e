"""Webhook pipeline services.

Signature verification, event decoding, asset mirroring and reconciliation,
composed by `MuxWebhookProcessor`.
"""

from videosync.services.asset_mirror import AssetMirror, MirroredAssets
from videosync.services.mux_events import MuxEvent, UnrecognizedEvent, decode_event
from videosync.services.mux_signature import sign_mux_payload, verify_mux_signature
from videosync.services.reconciler import ReconcileResult, VideoReconciler
from videosync.services.webhook_sync import MuxWebhookProcessor, WebhookContext

__all__ = [
    "AssetMirror",
    "MirroredAssets",
    "MuxEvent",
    "UnrecognizedEvent",
    "decode_event",
    "sign_mux_payload",
    "verify_mux_signature",
    "ReconcileResult",
    "VideoReconciler",
    "MuxWebhookProcessor",
    "WebhookContext",
]
