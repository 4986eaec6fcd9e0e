"""videosync command-line interface.

Commands live in submodules under `videosync.cli.*`; each exposes a
`register(cli)` hook.
"""

from __future__ import annotations

import click

from videosync.app_version import get_app_version
from videosync.observability import init_observability


@click.group()
@click.version_option(version=get_app_version(), prog_name="videosync")
def cli() -> None:
    """videosync - Mux webhook ingestion and video record reconciliation."""
    init_observability()


def _register_commands() -> None:
    from videosync.cli import config, db, serve, videos, webhooks

    config.register(cli)
    db.register(cli)
    serve.register(cli)
    videos.register(cli)
    webhooks.register(cli)


_register_commands()


if __name__ == "__main__":
    cli()
