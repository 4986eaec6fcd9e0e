"""Database CLI commands."""

from __future__ import annotations

import click

from videosync.cli.ui import console
from videosync.storage.database import init_db


@click.group()
def db() -> None:
    """Manage the video database."""


@db.command("init")
def db_init() -> None:
    """Create tables that do not exist yet (use alembic for upgrades)."""
    try:
        init_db()
    except Exception as exc:
        raise click.ClickException(f"Database initialization failed: {exc}") from exc
    console.print("[green]Database tables ready[/green]")


def register(cli: click.Group) -> None:
    cli.add_command(db)
