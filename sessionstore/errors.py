from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from pydantic import BaseModel, Field


class SessionStoreError(RuntimeError):
    """Base class for every error raised by the session store layer."""


class StoreUnavailable(SessionStoreError):
    """Raised when Redis is unreachable, errors out, or does not answer in time."""

    def __init__(self, operation: str, key: str | None = None, *, reason: str | None = None):
        self.operation = operation
        self.key = key
        self.reason = reason
        message = f"Session store unavailable during {operation}"
        if key:
            message += f" (key={key})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class CorruptContext(SessionStoreError):
    """Raised when a stored value cannot be decoded."""

    def __init__(self, key: str, reason: str | None = None):
        self.key = key
        self.reason = reason
        super().__init__(f"Corrupt value stored under '{key}'" + (f": {reason}" if reason else ""))


class InvalidArgument(SessionStoreError, ValueError):
    """Raised for malformed input, before any network call is made."""


class ErrorResponse(BaseModel):
    """
    Standard error payload of the admin API:
    {
        "error": "not_found",
        "message": "No context stored for user",
        "code": 404,
        "details": {...}
    }
    """

    error: str = Field(..., description="Machine-readable error type")
    message: str = Field(..., description="Human-readable error message")
    code: int = Field(..., description="HTTP status code for this error")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Optional structured error details"
    )


def http_error(
    status_code: int,
    *,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    payload = ErrorResponse(error=error, message=message, code=status_code, details=details)
    return HTTPException(status_code=status_code, detail=payload.model_dump())


def bad_request(message: str, *, details: Optional[Dict[str, Any]] = None) -> HTTPException:
    return http_error(
        status.HTTP_400_BAD_REQUEST, error="bad_request", message=message, details=details
    )


def not_found(message: str, *, details: Optional[Dict[str, Any]] = None) -> HTTPException:
    return http_error(
        status.HTTP_404_NOT_FOUND, error="not_found", message=message, details=details
    )


__all__ = [
    "CorruptContext",
    "ErrorResponse",
    "InvalidArgument",
    "SessionStoreError",
    "StoreUnavailable",
    "bad_request",
    "http_error",
    "not_found",
]
