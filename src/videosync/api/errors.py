"""Domain-specific exceptions and helpers for consistent API errors."""

from __future__ import annotations

from fastapi import HTTPException, status


class DomainError(Exception):
    """Base class for domain errors."""

    error: str = "domain_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, error: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if error:
            self.error = error
        if status_code:
            self.status_code = status_code


class ConfigurationError(DomainError):
    error = "configuration_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UnauthenticatedError(DomainError):
    error = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidSignatureError(DomainError):
    error = "invalid_signature"
    status_code = status.HTTP_401_UNAUTHORIZED


class MalformedEventError(DomainError):
    error = "malformed_event"
    status_code = status.HTTP_400_BAD_REQUEST


class UnrecognizedEventError(DomainError):
    error = "unrecognized_event"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, event_type: str | None):
        super().__init__("Unknown event type")
        self.event_type = event_type


class MirrorFailureError(DomainError):
    error = "mirror_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreFailureError(DomainError):
    error = "store_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(err: DomainError) -> HTTPException:
    """Convert DomainError to HTTPException with consistent payload."""
    return HTTPException(
        status_code=err.status_code,
        detail={"error": err.error, "detail": str(err)},
    )
