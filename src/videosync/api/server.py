"""FastAPI application for the videosync webhook service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable
from uuid import uuid4

import os

from fastapi import FastAPI, HTTPException
from fastapi.requests import Request
from fastapi.responses import Response, JSONResponse

import time
import sentry_sdk
from prometheus_client import Counter, Histogram

from videosync.api.errors import ConfigurationError, DomainError, to_http_exception
from videosync.api.routes import health, media, webhooks
from videosync.api.routes import metrics as metrics_route
from videosync.app_version import get_app_version
from videosync.config import settings
from videosync.observability.logging import logger, request_id_var
from videosync.storage.database import (
    init_async_db,
    init_db,
    is_async_url,
    shutdown_async_db,
    shutdown_db,
)


def _should_init_sentry() -> bool:
    """Guard Sentry initialization in tests/dev to avoid noisy pending-event logs."""
    if not settings.sentry_dsn:
        return False
    if os.getenv("PYTEST_CURRENT_TEST"):
        return False
    if os.getenv("DISABLE_SENTRY", "").lower() in ("1", "true", "yes"):
        return False
    return True


REQUEST_COUNT = Counter(
    "videosync_http_requests_total", "Total HTTP requests", ["method", "path", "status"]
)
REQUEST_LATENCY = Histogram(
    "videosync_http_request_duration_seconds",
    "HTTP request duration in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
    labelnames=["path"],
)


def _metrics_path(request: Request) -> str:
    """Return a low-cardinality path label for metrics."""
    route = request.scope.get("route")
    if route is not None:
        path = getattr(route, "path", None)
        if path:
            return str(path)
    return "unmatched"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - logging, database tables and secret check on startup."""
    from videosync.observability import init_observability

    init_observability()
    logger.info("videosync_api_starting", environment=settings.environment)

    if _should_init_sentry():
        try:
            sentry_sdk.init(dsn=settings.sentry_dsn, traces_sample_rate=0.1, shutdown_timeout=0)
        except Exception as exc:  # tolerates invalid/empty DSN in dev/test
            logger.warning("sentry_init_skipped", error=str(exc))

    # Ensure database tables exist (supports async + sync drivers)
    try:
        if is_async_url(settings.database_url):
            await init_async_db()
        else:
            init_db()
        app.state.database_ready = True
    except Exception as exc:
        logger.error("database_init_failed", error=str(exc))
        app.state.database_ready = False
        if settings.fail_fast_on_startup:
            raise

    # Without a secret every webhook delivery is refused with a configuration error.
    app.state.webhook_secret_configured = bool((settings.mux_webhook_secret or "").strip())
    if not app.state.webhook_secret_configured:
        logger.error("mux_webhook_secret_missing")
        if settings.fail_fast_on_startup:
            raise ConfigurationError("Missing MUX_WEBHOOK_SECRET")

    yield

    logger.info("videosync_api_stopping")
    await shutdown_async_db()
    shutdown_db()


app = FastAPI(
    title="videosync API",
    description="Mux webhook ingestion and video record reconciliation",
    version=get_app_version(),
    lifespan=lifespan,
)


@app.middleware("http")
async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Middleware to manage X-Request-ID header and contextvar propagation."""

    incoming_request_id = request.headers.get("X-Request-ID")
    request_id = incoming_request_id or str(uuid4())

    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)

    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def timing_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    try:
        path_label = _metrics_path(request)
        REQUEST_COUNT.labels(
            method=request.method,
            path=path_label,
            status=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(path=path_label).observe(duration_ms / 1000.0)
    except Exception as metrics_exc:  # pragma: no cover - metrics should not break requests
        logger.debug(
            "metrics_observe_failed",
            exc=str(metrics_exc),
            exc_type=type(metrics_exc).__name__,
        )
    logger.info(
        "request_complete",
        path=str(request.url.path),
        method=request.method,
        status=response.status_code,
        duration_ms=round(duration_ms, 2),
        request_id=request.headers.get("X-Request-ID"),
    )
    response.headers["X-Response-Time-ms"] = f"{duration_ms:.2f}"
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return consistent error envelope: {"error": <code>, "detail": <reason>}."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error", "http_error")
        detail = detail.get("detail", detail)
    else:
        error_code = "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": error_code,
            "detail": detail,
        },
        headers=exc.headers,
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    http_exc = to_http_exception(exc)
    return await http_exception_handler(request, http_exc)


app.include_router(health.router)
app.include_router(webhooks.router)
app.include_router(media.router)
app.include_router(metrics_route.router)


__all__ = ["app"]
