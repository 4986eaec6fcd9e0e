"""Health check endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from videosync.api.schemas import HealthResponse
from videosync.app_version import get_app_version
from videosync.config.settings import settings
from videosync.observability.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> dict[str, Any]:
    """Liveness check; configuration gaps are reported, not failed."""
    return {
        "status": "healthy",
        "version": get_app_version(),
        "environment": settings.environment,
        "storage_backend": settings.storage_backend,
        "mirror_enabled": settings.mirror_enabled,
        "webhook_secret_configured": bool((settings.mux_webhook_secret or "").strip()),
        "database_ready": getattr(request.app.state, "database_ready", None),
    }


@router.get("/health/db")
async def db_health_check() -> JSONResponse:
    """Check database connectivity.

    Returns 200 if database is healthy, 503 otherwise.
    """
    from videosync.storage.database import get_async_engine

    checks: Dict[str, Any] = {"database": "unknown"}
    status_code = 200

    try:
        engine = get_async_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as exc:
        logger.error("database_health_check_failed", error=str(exc))
        checks["database"] = "unhealthy"
        checks["database_error"] = str(exc)
        status_code = 503

    return JSONResponse(content=checks, status_code=status_code)


__all__ = ["router"]
