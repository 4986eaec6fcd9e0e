"""API server CLI command."""

from __future__ import annotations

import click

from videosync.config import settings


@click.command()
@click.option("--host", default=None, help="Bind host (defaults to API_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (defaults to API_PORT)")
@click.option("--reload", is_flag=True, default=False, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the webhook API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "videosync.api.server:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def register(cli: click.Group) -> None:
    cli.add_command(serve)
