"""Media endpoint serving mirrored assets from the local storage backend."""

import mimetypes

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from videosync.observability.logging import get_logger
from videosync.storage.object_store import LocalObjectStore, get_object_store, normalize_key

router = APIRouter(prefix="/v1/media", tags=["media"])
logger = get_logger(__name__)


@router.get("/{key:path}")
async def get_media(key: str) -> FileResponse:
    """Serve a mirrored object (thumbnail.jpg / animated.gif) by storage key."""
    store = get_object_store()
    if not isinstance(store, LocalObjectStore):
        raise HTTPException(status_code=404, detail="Media is served by the object store")

    try:
        safe_key = normalize_key(key)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Media not found") from exc
    # Dot-prefixed parts cover the staging area for in-flight writes.
    if any(part.startswith(".") for part in safe_key.split("/")):
        raise HTTPException(status_code=404, detail="Media not found")

    root = store.root.resolve()
    path = store.path_for(safe_key).resolve()
    try:
        path.relative_to(root)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Media not found") from exc

    if not path.is_file():
        logger.info("media_not_found", key=safe_key)
        raise HTTPException(status_code=404, detail="Media not found")

    media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return FileResponse(path, media_type=media_type)


__all__ = ["router"]
