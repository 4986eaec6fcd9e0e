"""Configuration CLI commands."""

from __future__ import annotations

import click
from rich.table import Table

from videosync.cli.ui import console
from videosync.config import settings


def _redact_database_url(url: str) -> str:
    return url.split("@")[-1] if "@" in url else url


@click.group()
def config() -> None:
    """Inspect configuration."""


@config.command("show")
def config_show() -> None:
    """Show key configuration settings."""
    table = Table(title="videosync Configuration", show_lines=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Environment", settings.environment)
    table.add_row("Database URL", _redact_database_url(settings.database_url))
    table.add_row("API Host", settings.api_host)
    table.add_row("API Port", str(settings.api_port))
    table.add_row("Webhook Secret", "configured" if settings.mux_webhook_secret else "MISSING")
    table.add_row("Signature Tolerance (s)", str(settings.mux_signature_tolerance_seconds))
    table.add_row("Mux Image Base URL", settings.mux_image_base_url)
    table.add_row("Mirror Enabled", str(settings.mirror_enabled))
    table.add_row("Storage Backend", settings.storage_backend)
    if settings.storage_backend == "s3":
        table.add_row("S3 Bucket", settings.storage_s3_bucket)
    else:
        table.add_row("Local Storage Dir", settings.storage_local_dir)

    console.print(table)


def register(cli: click.Group) -> None:
    cli.add_command(config)
