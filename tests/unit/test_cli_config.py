"""Unit tests for config CLI commands."""

from __future__ import annotations

from click.testing import CliRunner

from videosync.cli.main import cli


def test_config_show_prints_table(monkeypatch) -> None:
    # Make output deterministic and avoid leaking local DB URLs.
    monkeypatch.setattr(
        "videosync.cli.config.settings.database_url", "postgresql://u:pw@db.local:5432/v"
    )
    monkeypatch.setattr("videosync.cli.config.settings.api_host", "127.0.0.1")
    monkeypatch.setattr("videosync.cli.config.settings.api_port", 8000)
    monkeypatch.setattr("videosync.cli.config.settings.environment", "test")
    monkeypatch.setattr("videosync.cli.config.settings.mux_webhook_secret", "s3cr3t")
    monkeypatch.setattr("videosync.cli.config.settings.storage_backend", "local")

    result = CliRunner().invoke(cli, ["config", "show"])
    assert result.exit_code == 0
    assert "videosync Configuration" in result.output
    assert "db.local:5432/v" in result.output
    assert "u:pw@" not in result.output
    assert "s3cr3t" not in result.output
    assert "configured" in result.output


def test_version_option() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "videosync" in result.output
