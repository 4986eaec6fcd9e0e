"""Pytest configuration and shared fixtures."""

import os
import sys
import tempfile
from pathlib import Path

import pytest
import httpx

# Ensure source tree is importable without editable install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

TEST_WEBHOOK_SECRET = "test-mux-webhook-secret"
TEST_IMAGE_BASE_URL = "http://localhost:9999/mux-image"


def pytest_configure(config):
    """Configure pytest markers and environment for tests."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")

    # These MUST override any developer shell/.env values to keep the test run deterministic.
    os.environ["ENVIRONMENT"] = "test"
    os.environ["FAIL_FAST_ON_STARTUP"] = "false"
    os.environ["MUX_WEBHOOK_SECRET"] = TEST_WEBHOOK_SECRET
    os.environ["MUX_IMAGE_BASE_URL"] = TEST_IMAGE_BASE_URL
    os.environ["MIRROR_ENABLED"] = "true"
    os.environ["STORAGE_BACKEND"] = "local"
    os.environ["STORAGE_PUBLIC_BASE_URL"] = "http://test/v1/media"
    os.environ["SENTRY_DSN"] = ""
    # Force SQLite for tests.
    #
    # IMPORTANT: do not write SQLite DB files into the repo root (they can become stale and
    # cause confusing schema mismatch failures). Use a per-test-run temp directory instead.
    test_artifacts_root = Path(
        os.environ.get("VIDEOSYNC_TEST_ARTIFACTS_DIR") or (PROJECT_ROOT / ".tmp" / "pytest")
    )
    test_artifacts_root.mkdir(parents=True, exist_ok=True)
    run_dir = Path(tempfile.mkdtemp(prefix="run_", dir=str(test_artifacts_root)))
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{run_dir / 'test_default.db'}"
    os.environ["STORAGE_LOCAL_DIR"] = str(run_dir / "media")


@pytest.fixture(autouse=True)
def block_external_http(monkeypatch):
    """Fail the fast lane if code tries to hit the public internet.

    Allowlist only:
    - ASGI test host ("test") used with httpx.ASGITransport
    - localhost/loopback for local services
    """

    allowed_hosts = {"test", "testserver", "localhost", "127.0.0.1", "0.0.0.0"}

    async def _async_guard(self, method, url, *args, **kwargs):  # type: ignore[no-untyped-def]
        u = httpx.URL(url) if not isinstance(url, httpx.URL) else url
        if u.scheme in {"http", "https"} and (u.host or "") not in allowed_hosts:
            raise RuntimeError(f"External HTTP blocked in tests: {u!s}")
        return await _orig_async_request(self, method, url, *args, **kwargs)

    def _sync_guard(self, method, url, *args, **kwargs):  # type: ignore[no-untyped-def]
        u = httpx.URL(url) if not isinstance(url, httpx.URL) else url
        if u.scheme in {"http", "https"} and (u.host or "") not in allowed_hosts:
            raise RuntimeError(f"External HTTP blocked in tests: {u!s}")
        return _orig_sync_request(self, method, url, *args, **kwargs)

    _orig_async_request = httpx.AsyncClient.request
    _orig_sync_request = httpx.Client.request
    monkeypatch.setattr(httpx.AsyncClient, "request", _async_guard, raising=True)
    monkeypatch.setattr(httpx.Client, "request", _sync_guard, raising=True)

    yield


@pytest.fixture(autouse=True)
def reset_object_store_cache():
    """The object store is cached per process; tests may change storage settings."""
    from videosync.storage.object_store import get_object_store

    get_object_store.cache_clear()
    yield
    get_object_store.cache_clear()


def pytest_sessionfinish(session, exitstatus):  # noqa: ARG001
    """Best-effort teardown for global DB engines.

    Prevents leaked SQLite/aiosqlite connections from throwing unraisable
    exceptions after the event loop has been closed.
    """
    try:
        import asyncio

        from videosync.storage.database import shutdown_async_db, shutdown_db

        shutdown_db()
        asyncio.run(shutdown_async_db())
    except Exception:
        # Never fail the test run during teardown.
        return


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio tests on asyncio (SQLAlchemy/asyncio-based stack)."""
    return "asyncio"


@pytest.fixture
def webhook_secret() -> str:
    return TEST_WEBHOOK_SECRET


@pytest.fixture
def image_base_url() -> str:
    return TEST_IMAGE_BASE_URL


@pytest.fixture
async def async_client():
    """httpx AsyncClient wired to the FastAPI app with lifespan enabled."""
    from httpx import ASGITransport, AsyncClient

    from videosync.api.server import app

    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
async def async_session_factory():
    """Isolated in-memory database for repository/reconciler tests."""
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
    from sqlalchemy.pool import StaticPool

    from videosync.storage.models import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest.fixture
def signed_headers(webhook_secret):
    """Build request headers carrying a valid mux-signature for a body."""
    from videosync.services.mux_signature import SIGNATURE_HEADER, sign_mux_payload

    def _build(body: bytes, *, secret: str | None = None, timestamp: int | None = None) -> dict:
        header = sign_mux_payload(body, secret or webhook_secret, timestamp=timestamp)
        return {SIGNATURE_HEADER: header, "Content-Type": "application/json"}

    return _build
