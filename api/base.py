"""Unified API response envelope and error codes for the work-session API."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Request identifier, echoed in X-Request-ID")


class APIResponse(BaseModel):
    """
    Envelope returned by every endpoint.

    Exactly one of `data` and `error` is set, depending on `success`.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta(request_id: str | None) -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=request_id or str(uuid4()))


def success_response(data: Any, request_id: str | None = None) -> APIResponse:
    return APIResponse(success=True, data=data, meta=_meta(request_id))


def error_response(code: str, message: str, request_id: str | None = None) -> APIResponse:
    return APIResponse(
        success=False,
        error=APIError(code=code, message=message),
        meta=_meta(request_id),
    )


class ErrorCodes:
    """
    Standard error codes for consistent error handling.

    Domain errors carry their own code (WorkSessionError.code); the codes
    here cover the transport-level failures and mirror the domain ones so
    clients can switch on a single list.
    """

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"

    # Ticket Status
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    TERMINAL_STATE_VIOLATION = "TERMINAL_STATE_VIOLATION"
    CLOCK_REGRESSION = "CLOCK_REGRESSION"

    # Daily Session
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    SESSION_ALREADY_CLOSED = "SESSION_ALREADY_CLOSED"
    SESSION_CLOSED = "SESSION_CLOSED"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SESSION_BUSY = "SESSION_BUSY"
