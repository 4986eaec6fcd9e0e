"""Create videos table.

Revision ID: 001_videos
Revises:
Create Date: 2026-10-19

Creates:
- videos: one row per direct upload, reconciled from Mux asset webhooks
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from videosync.storage.models import GUID


revision: str = "001_videos"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "videos",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False, server_default="Untitled"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("user_id", sa.String(128), nullable=True),
        sa.Column("visibility", sa.String(16), nullable=False, server_default="private"),
        sa.Column("mux_status", sa.String(32), nullable=True),
        sa.Column("mux_asset_id", sa.String(128), nullable=True),
        sa.Column("mux_upload_id", sa.String(128), nullable=True),
        sa.Column("mux_playback_id", sa.String(128), nullable=True),
        sa.Column("mux_track_id", sa.String(128), nullable=True),
        sa.Column("mux_track_status", sa.String(32), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("thumbnail_key", sa.Text(), nullable=True),
        sa.Column("preview_url", sa.Text(), nullable=True),
        sa.Column("preview_key", sa.Text(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("mux_asset_id", name="uq_videos_mux_asset_id"),
        sa.UniqueConstraint("mux_upload_id", name="uq_videos_mux_upload_id"),
        sa.UniqueConstraint("mux_playback_id", name="uq_videos_mux_playback_id"),
        sa.UniqueConstraint("mux_track_id", name="uq_videos_mux_track_id"),
    )
    op.create_index("ix_videos_user_id", "videos", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_videos_user_id", table_name="videos")
    op.drop_table("videos")
