from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from videosync.config.settings import Settings, get_settings, reset_settings_cache


def test_validate_storage_requires_bucket_when_s3(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ValidationError, match="STORAGE_S3_BUCKET is required"):
        Settings(storage_backend="s3", storage_s3_bucket="")


def test_validate_storage_backend_choices(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ValidationError):
        Settings(storage_backend="gcs")
    assert Settings(storage_backend="s3", storage_s3_bucket="b").storage_backend == "s3"


def test_validate_webhook_secret_required_in_production(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ValidationError, match="MUX_WEBHOOK_SECRET is required in production"):
        Settings(environment="production", mux_webhook_secret="")

    assert Settings(environment="production", mux_webhook_secret="s").mux_webhook_secret == "s"


def test_defaults(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("MUX_IMAGE_BASE_URL", "MIRROR_ENABLED", "STORAGE_BACKEND"):
        monkeypatch.delenv(name, raising=False)

    s = Settings()
    assert s.mux_signature_tolerance_seconds == 300
    assert s.mux_image_base_url == "https://image.mux.com"
    assert s.mirror_enabled is True
    assert s.storage_backend == "local"
    assert s.log_webhook_payloads is False


def test_env_overrides_are_case_insensitive(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MIRROR_ENABLED", raising=False)
    monkeypatch.setenv("mirror_enabled", "false")
    monkeypatch.setenv("MUX_SIGNATURE_TOLERANCE_SECONDS", "60")

    s = Settings()
    assert s.mirror_enabled is False
    assert s.mux_signature_tolerance_seconds == 60


def test_get_settings_is_cached_until_reset(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    reset_settings_cache()
    try:
        first = get_settings()
        assert get_settings() is first
        reset_settings_cache()
        assert get_settings() is not first
    finally:
        reset_settings_cache()
