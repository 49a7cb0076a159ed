# =============================================================================
# app/middleware/errors.py - Catch-All Error Stage
# =============================================================================
# Converts any exception raised by static serving or a route handler into
# the 500 JSON response. It sits inside the chain so the 500 still passes
# back through the CORS, logging, rate-limit and security stages.
# =============================================================================

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from app.exceptions import internal_error_response

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Catch downstream exceptions, log them with their stack, return 500.

    Args:
        expose_errors: Put the raw exception message in the response body
            (development only)
    """

    def __init__(self, app: ASGIApp, expose_errors: bool = False) -> None:
        super().__init__(app)
        self.expose_errors = expose_errors

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
            return internal_error_response(exc, self.expose_errors)
