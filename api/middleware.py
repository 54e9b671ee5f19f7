"""Request-scoped middleware for API requests."""

import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

_MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an ID, echoed in X-Request-ID.

    A caller-supplied X-Request-ID is kept so a status change can be traced
    from the client through to the audit log.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", "").strip()
        if not request_id or len(request_id) > _MAX_REQUEST_ID_LENGTH:
            request_id = str(uuid4())
        request.state.request_id = request_id

        started = time.monotonic()
        response = await call_next(request)
        logger.debug(
            "%s %s -> %d in %.1fms [%s]",
            request.method, request.url.path, response.status_code,
            (time.monotonic() - started) * 1000, request_id,
        )

        response.headers["X-Request-ID"] = request_id
        return response
