"""Well-known Mux CDN URLs derived from a playback id."""

from __future__ import annotations

from videosync.config import settings

THUMBNAIL_FILENAME = "thumbnail.jpg"
PREVIEW_FILENAME = "animated.gif"


def _image_base() -> str:
    return (settings.mux_image_base_url or "https://image.mux.com").rstrip("/")


def thumbnail_url(playback_id: str) -> str:
    return f"{_image_base()}/{playback_id}/{THUMBNAIL_FILENAME}"


def preview_url(playback_id: str) -> str:
    return f"{_image_base()}/{playback_id}/{PREVIEW_FILENAME}"
