"""Mux webhook signature verification.

Mux signs each delivery with a `mux-signature` header of the form::

    t=1565220904,v1=20c75c1180c701...

where `v1` is the hex HMAC-SHA256 of ``"{t}.{raw body}"`` keyed by the
endpoint's signing secret. Verification always runs over the exact bytes that
arrived on the wire; never over a re-serialized payload.
"""

from __future__ import annotations

import hashlib
import hmac
import time

from videosync.api.errors import (
    ConfigurationError,
    InvalidSignatureError,
    UnauthenticatedError,
)
from videosync.observability.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "mux-signature"
DEFAULT_TOLERANCE_SECONDS = 300


def _compute_signature(timestamp: str, payload: bytes, secret: str) -> str:
    signed_payload = timestamp.encode("utf-8") + b"." + payload
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def _parse_header(signature_header: str) -> tuple[str, list[str]]:
    timestamp: str | None = None
    signatures: list[str] = []
    for element in signature_header.split(","):
        key, sep, value = element.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            timestamp = value
        elif key == "v1" and value:
            signatures.append(value)
    if timestamp is None or not signatures:
        raise InvalidSignatureError("Invalid signature header format")
    return timestamp, signatures


def sign_mux_payload(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a `mux-signature` header value for `payload`."""
    ts = str(int(time.time()) if timestamp is None else timestamp)
    return f"t={ts},v1={_compute_signature(ts, payload, secret)}"


def verify_mux_signature(
    payload: bytes,
    signature_header: str | None,
    secret: str,
    *,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> None:
    """Verify that `payload` was signed by Mux with `secret`.

    Args:
        payload: Raw request body bytes, exactly as received.
        signature_header: Value of the `mux-signature` header (None when absent).
        secret: Webhook signing secret.
        tolerance_seconds: Maximum allowed age of the signed timestamp.
        now: Override for the current unix time (tests).

    Raises:
        ConfigurationError: The signing secret is not configured.
        UnauthenticatedError: The signature header is missing.
        InvalidSignatureError: The header is malformed, stale, or does not match.
    """
    if not secret:
        logger.error("webhook_secret_required", reason="missing_secret")
        raise ConfigurationError("Missing MUX_WEBHOOK_SECRET")

    if not signature_header:
        logger.warning("invalid_webhook_signature", reason="missing_signature")
        raise UnauthenticatedError("No signature found")

    timestamp, signatures = _parse_header(signature_header)
    try:
        signed_at = int(timestamp)
    except ValueError as exc:
        logger.warning("invalid_webhook_signature", reason="bad_timestamp")
        raise InvalidSignatureError("Invalid signature timestamp") from exc

    current = time.time() if now is None else now
    if tolerance_seconds > 0 and abs(current - signed_at) > tolerance_seconds:
        logger.warning(
            "invalid_webhook_signature",
            reason="timestamp_outside_tolerance",
            age_seconds=int(current - signed_at),
        )
        raise InvalidSignatureError("Signature timestamp outside tolerance")

    expected = _compute_signature(timestamp, payload, secret)
    # Several v1 values are sent while a secret is being rolled.
    matches = [hmac.compare_digest(expected, candidate) for candidate in signatures]
    if not any(matches):
        logger.warning("invalid_webhook_signature", reason="mismatch")
        raise InvalidSignatureError("Invalid webhook signature")

    logger.info("webhook_signature_verified", digest_algorithm="sha256")
