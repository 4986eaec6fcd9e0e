"""API route modules."""

from videosync.api.routes import health, media, metrics, webhooks

__all__ = ["health", "media", "metrics", "webhooks"]
