"""Typed Mux webhook events.

`decode_event` turns a parsed webhook envelope (``{"type": ..., "data": {...}}``)
into one of a closed set of variants, each carrying only what reconciliation
needs. Unknown event types decode to `UnrecognizedEvent` rather than raising,
so the caller decides how to reject them.
"""

from __future__ import annotations

import math
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict

from videosync.api.errors import MalformedEventError

ASSET_CREATED = "video.asset.created"
ASSET_READY = "video.asset.ready"
ASSET_ERRORED = "video.asset.errored"
ASSET_DELETED = "video.asset.deleted"
TRACK_READY = "video.asset.track.ready"

# Largest duration the INTEGER column holds.
MAX_DURATION_MS = 2**31 - 1


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class AssetCreated(_Event):
    type: Literal["video.asset.created"] = ASSET_CREATED
    upload_id: str
    asset_id: str | None = None
    status: str | None = None


class AssetReady(_Event):
    type: Literal["video.asset.ready"] = ASSET_READY
    upload_id: str
    playback_id: str
    asset_id: str | None = None
    status: str | None = None
    duration_seconds: float | None = None

    @property
    def duration_ms(self) -> int:
        if not self.duration_seconds:
            return 0
        # Half-up rounding.
        return math.floor(self.duration_seconds * 1000 + 0.5)


class AssetErrored(_Event):
    type: Literal["video.asset.errored"] = ASSET_ERRORED
    upload_id: str
    status: str | None = None


class AssetDeleted(_Event):
    type: Literal["video.asset.deleted"] = ASSET_DELETED
    upload_id: str


class TrackReady(_Event):
    type: Literal["video.asset.track.ready"] = TRACK_READY
    asset_id: str
    track_id: str | None = None
    status: str | None = None


class UnrecognizedEvent(_Event):
    type: str | None = None


MuxEvent = Union[AssetCreated, AssetReady, AssetErrored, AssetDeleted, TrackReady]


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _require(data: dict[str, Any], key: str, message: str) -> str:
    value = _opt_str(data, key)
    if value is None:
        raise MalformedEventError(message)
    return value


def _first_playback_id(data: dict[str, Any]) -> str | None:
    playback_ids = data.get("playback_ids")
    if not isinstance(playback_ids, list) or not playback_ids:
        return None
    first = playback_ids[0]
    if isinstance(first, dict):
        return _opt_str(first, "id")
    return None


def _duration(data: dict[str, Any]) -> float | None:
    value = data.get("duration")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        seconds = float(value)
    except OverflowError as exc:
        raise MalformedEventError("Invalid duration") from exc
    # json.loads accepts NaN and Infinity.
    if (
        not math.isfinite(seconds)
        or not 0 <= seconds <= MAX_DURATION_MS
        or math.floor(seconds * 1000 + 0.5) > MAX_DURATION_MS
    ):
        raise MalformedEventError("Invalid duration")
    return seconds


def decode_event(payload: Any) -> MuxEvent | UnrecognizedEvent:
    """Decode a webhook envelope into a typed event.

    Raises:
        MalformedEventError: The envelope is not an object with a string `type`
            and an object `data`, a required identifier is missing, or the
            duration is not a finite, non-negative number that fits the column.
    """
    if not isinstance(payload, dict):
        raise MalformedEventError("Payload must be a JSON object")
    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedEventError("Missing event type")
    data = payload.get("data")
    if not isinstance(data, dict):
        raise MalformedEventError("Missing event data")

    if event_type == ASSET_CREATED:
        return AssetCreated(
            upload_id=_require(data, "upload_id", "No upload id found"),
            asset_id=_opt_str(data, "id"),
            status=_opt_str(data, "status"),
        )
    if event_type == ASSET_READY:
        upload_id = _require(data, "upload_id", "Missing upload id")
        playback_id = _first_playback_id(data)
        if playback_id is None:
            raise MalformedEventError("Missing playback id")
        return AssetReady(
            upload_id=upload_id,
            playback_id=playback_id,
            asset_id=_opt_str(data, "id"),
            status=_opt_str(data, "status"),
            duration_seconds=_duration(data),
        )
    if event_type == ASSET_ERRORED:
        return AssetErrored(
            upload_id=_require(data, "upload_id", "Missing upload id"),
            status=_opt_str(data, "status"),
        )
    if event_type == ASSET_DELETED:
        return AssetDeleted(upload_id=_require(data, "upload_id", "Missing upload id"))
    if event_type == TRACK_READY:
        return TrackReady(
            asset_id=_require(data, "asset_id", "Missing asset id"),
            track_id=_opt_str(data, "id"),
            status=_opt_str(data, "status"),
        )
    return UnrecognizedEvent(type=event_type)
