"""Shared CLI UI helpers (Rich formatting)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from rich.console import Console
from rich.table import Table

from videosync.storage.models import MuxStatus

console = Console()


def format_status(status: str | None) -> str:
    """Return colorized status string for terminal output."""
    colors = {
        MuxStatus.CREATED.value: "grey62",
        MuxStatus.PREPARING.value: "yellow",
        MuxStatus.READY.value: "green",
        MuxStatus.ERRORED.value: "red",
    }
    if not status:
        return "-"
    color = colors.get(status, "white")
    return f"[{color}]{status}[/{color}]"


def render_videos_table(videos: Iterable[Any]) -> None:
    """Render a table of videos using Rich."""
    table = Table(title="Recent Videos", show_lines=False)
    table.add_column("Upload ID", style="white")
    table.add_column("Title", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Playback ID", style="magenta")
    table.add_column("Duration (ms)", justify="right")
    table.add_column("Created", style="white")

    for video in videos:
        created = getattr(video, "created_at", None)
        created_str = (
            created.isoformat(timespec="seconds") if isinstance(created, datetime) else "-"
        )
        table.add_row(
            getattr(video, "mux_upload_id", "") or "-",
            getattr(video, "title", ""),
            format_status(getattr(video, "mux_status", None)),
            getattr(video, "mux_playback_id", None) or "-",
            str(getattr(video, "duration", 0) or 0),
            created_str,
        )

    console.print(table)
