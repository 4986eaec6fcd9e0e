"""Video record CLI commands."""

from __future__ import annotations

import click
from rich.markup import escape
from rich.panel import Panel

from videosync.cli.ui import console, format_status, render_videos_table
from videosync.storage.database import get_session
from videosync.storage.models import VideoVisibility
from videosync.storage.repositories import VideoRepository


@click.group()
def videos() -> None:
    """Inspect and seed video records."""


@videos.command("create")
@click.option("--upload-id", required=True, help="Mux direct-upload id")
@click.option("--title", default="Untitled", show_default=True)
@click.option("--description", default=None)
@click.option("--user-id", default=None)
@click.option(
    "--visibility",
    type=click.Choice([v.value for v in VideoVisibility]),
    default=VideoVisibility.PRIVATE.value,
    show_default=True,
)
def videos_create(
    upload_id: str,
    title: str,
    description: str | None,
    user_id: str | None,
    visibility: str,
) -> None:
    """Record an initiated upload so webhook events can find it."""
    with get_session() as session:
        repo = VideoRepository(session)
        if repo.get_by_upload_id(upload_id) is not None:
            raise click.ClickException(f"Video with upload id {upload_id} already exists")
        video = repo.create(
            upload_id,
            title=title,
            description=description,
            user_id=user_id,
            visibility=VideoVisibility(visibility),
        )
        video_id = str(video.id)
    console.print(f"[green]Created video[/green] {video_id} (upload {upload_id})")


@videos.command("list")
@click.option("--limit", default=20, show_default=True, type=int)
def videos_list(limit: int) -> None:
    """List recent videos."""
    with get_session() as session:
        recent = VideoRepository(session).list(limit=limit)
    render_videos_table(recent)


@videos.command("show")
@click.argument("upload_id")
def videos_show(upload_id: str) -> None:
    """Show one video by its Mux upload id."""
    with get_session() as session:
        video = VideoRepository(session).get_by_upload_id(upload_id)
        if video is None:
            raise click.ClickException(f"Video with upload id {upload_id} not found")
        data = video.to_dict()

    lines = [
        f"[bold]Status[/bold] {format_status(data['mux_status'])}",
        f"[bold]Asset[/bold] {data['mux_asset_id'] or '-'}",
        f"[bold]Playback[/bold] {data['mux_playback_id'] or '-'}",
        f"[bold]Duration[/bold] {data['duration']} ms",
        f"[bold]Thumbnail[/bold] {data['thumbnail_url'] or '-'}",
        f"[bold]Preview[/bold] {data['preview_url'] or '-'}",
        f"[bold]Track[/bold] {data['mux_track_id'] or '-'} ({data['mux_track_status'] or '-'})",
    ]
    console.print(Panel("\n".join(lines), title=f"{escape(data['title'])} ({data['id']})"))


def register(cli: click.Group) -> None:
    cli.add_command(videos)
