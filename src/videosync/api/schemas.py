"""Shared Pydantic response models for OpenAPI."""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Machine-readable error code")
    detail: Optional[str | Dict[str, Any]] = Field(
        None, description="Human-readable or structured error detail"
    )


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    storage_backend: str
    mirror_enabled: bool
    webhook_secret_configured: bool
    database_ready: Optional[bool] = None


class WebhookAck(BaseModel):
    status: str = "received"
    event_type: Optional[str] = None
    rows_affected: int = 0
