# =============================================================================
# app/exceptions.py - Custom Exceptions and Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
#
# Every error this layer produces has the same JSON shape:
#   {"error": "<short reason>", "message": "<what happened>"}
#
# Handler groups mounted under /api/* may raise these exceptions too, or
# plain HTTPException, which keeps FastAPI's {"detail": ...} body.
# =============================================================================

import logging
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.exception_handlers import http_exception_handler as default_http_exception_handler
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong!"
GENERIC_MESSAGE = "Internal server error"


class ShoppingDmartException(Exception):
    """
    Base exception for the ShoppingDmart backend.

    All custom exceptions inherit from this class and render as
    {"error", "message"} JSON with their own status code.
    """

    def __init__(
        self,
        message: str,
        error: str = GENERIC_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error = error
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result: dict[str, Any] = {
            "error": self.error,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def to_response(self) -> JSONResponse:
        """Render the exception as a JSON response."""
        return JSONResponse(
            status_code=self.status_code,
            content=self.to_dict(),
            headers=self.headers or None,
        )


# =============================================================================
# Routing Exceptions
# =============================================================================

class RouteNotFoundError(ShoppingDmartException):
    """Raised when no static asset, page route or API group matches."""

    def __init__(self, method: str, path: str):
        super().__init__(
            message=f"Cannot {method} {path}",
            error="Route not found",
            status_code=404,
        )


# =============================================================================
# Rate Limit Exceptions
# =============================================================================

class RateLimitExceededError(ShoppingDmartException):
    """Raised when a client exceeds its request allowance for the window."""

    def __init__(self, limit: int, retry_after: int):
        super().__init__(
            message="Too many requests, please try again later.",
            error="Too many requests",
            status_code=429,
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(retry_after),
            },
        )


# =============================================================================
# Body Exceptions
# =============================================================================

class BodyDecodeError(ShoppingDmartException):
    """Base class for request bodies the decoder refuses."""


class PayloadTooLargeError(BodyDecodeError):
    """Raised when a request body exceeds the size ceiling."""

    def __init__(self, limit_bytes: int, message: str = "request entity too large"):
        super().__init__(
            message=message,
            error="Payload too large",
            status_code=413,
            details={"limit_bytes": limit_bytes},
        )


class MalformedBodyError(BodyDecodeError):
    """Raised when a JSON or URL-encoded body cannot be parsed."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error="Bad request",
            status_code=400,
        )


class UnsupportedCharsetError(BodyDecodeError):
    """Raised when a body declares a charset the decoder cannot read."""

    def __init__(self, charset: str):
        super().__init__(
            message=f'unsupported charset "{charset.upper()}"',
            error="Unsupported media type",
            status_code=415,
            details={"charset": charset},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

def internal_error_response(exc: Exception, expose_message: bool) -> JSONResponse:
    """
    Build the 500 response for an unhandled exception.

    The raw exception message is only included when expose_message is set
    (development); everywhere else the caller sees a generic message.
    """
    return JSONResponse(
        status_code=500,
        content={
            "error": GENERIC_ERROR,
            "message": str(exc) if expose_message else GENERIC_MESSAGE,
        },
    )


async def shoppingdmart_exception_handler(
    request: Request,
    exc: ShoppingDmartException
) -> JSONResponse:
    """Convert ShoppingDmartException to JSON response."""
    return exc.to_response()


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """
    Handle HTTP exceptions raised by routing and by handler groups.

    The router's own "no route" signals become the route-not-found
    response: a 404 raised before any route matched (no endpoint in the
    scope), and the 405 a known path raises for another method. Any
    HTTPException raised by a handler keeps FastAPI's default body.
    """
    if _is_unmatched_route(request, exc):
        return RouteNotFoundError(request.method, request.url.path).to_response()
    return await default_http_exception_handler(request, exc)


def _is_unmatched_route(request: Request, exc: StarletteHTTPException) -> bool:
    if exc.status_code == 404:
        return "endpoint" not in request.scope
    if exc.status_code == 405:
        return exc.detail == HTTPStatus.METHOD_NOT_ALLOWED.phrase
    return False


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors from handler groups.

    Converts validation errors to the common error shape.
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation error",
            "message": "Request parameters failed validation",
            "details": {"errors": jsonable_encoder(exc.errors())},
        }
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last-resort handler for faults outside the inner error stage.

    Faults raised by handlers are caught by ErrorHandlerMiddleware first;
    this only sees faults from the outer middleware stages.
    """
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return internal_error_response(exc, request.app.state.settings.is_development)
