"""Work-session HTTP API: response envelope, routers and error mapping."""

from api.base import (
    APIError,
    APIMeta,
    APIResponse,
    success_response,
    error_response,
    ErrorCodes,
)
