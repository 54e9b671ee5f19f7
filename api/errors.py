"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import (
    ClockRegression,
    InvalidDateRange,
    InvalidTransition,
    LedgerNotFound,
    NoActiveSession,
    SessionAlreadyClosed,
    SessionBusy,
    SessionClosed,
    WorkSessionError,
)

logger = logging.getLogger(__name__)

# Most specific class first; the first isinstance match wins.
STATUS_CODES: list[tuple[type[WorkSessionError], int]] = [
    (LedgerNotFound, 404),
    (NoActiveSession, 404),
    (SessionAlreadyClosed, 409),
    (SessionClosed, 409),
    (InvalidTransition, 409),
    (ClockRegression, 409),
    (InvalidDateRange, 400),
    (SessionBusy, 503),
]


def status_for(exc: WorkSessionError) -> int:
    for exc_type, status in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status
    return 400


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, _request_id(request)).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(WorkSessionError)
    async def work_session_error_handler(request: Request, exc: WorkSessionError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.warning("%s: %s", exc.code, exc.message)
        return _error(request, status_code, exc.code, exc.message)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _error(request, 404, ErrorCodes.NOT_FOUND, message)
        if "already exists" in message.lower():
            return _error(request, 409, ErrorCodes.ALREADY_EXISTS, message)
        return _error(request, 400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
