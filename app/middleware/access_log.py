# =============================================================================
# app/middleware/access_log.py - Access Logging Stage
# =============================================================================
# Writes one Apache "combined" line per request to the "app.access" logger:
#
#   127.0.0.1 - - [18/Oct/2026:10:55:36 +0000] "GET /api/health HTTP/1.1" 200 97 "-" "curl/8.0"
#
# Side effect only: the request and response pass through unchanged. Requests
# rejected by the rate limiter never get here, so they are not logged.
# =============================================================================

import base64
import binascii
import logging
from datetime import datetime, timezone

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

access_logger = logging.getLogger("app.access")


def format_combined(
    scope: Scope,
    status: int | None,
    content_length: str | None,
    timestamp: datetime,
) -> str:
    """
    Render one access log line in combined format.

    Missing values are written as "-".
    """
    headers = Headers(scope=scope)
    client = scope.get("client")
    remote_addr = client[0] if client else "-"

    url = scope.get("path", "")
    query = scope.get("query_string", b"")
    if query:
        url = f"{url}?{query.decode('latin-1')}"

    request_line = f'{scope.get("method", "-")} {url} HTTP/{scope.get("http_version", "1.1")}'
    date = timestamp.strftime("%d/%b/%Y:%H:%M:%S +0000")

    return (
        f'{remote_addr} - {_remote_user(headers)} [{date}] "{request_line}" '
        f'{status if status is not None else "-"} {content_length or "-"} '
        f'"{headers.get("referer") or headers.get("referrer") or "-"}" '
        f'"{headers.get("user-agent") or "-"}"'
    )


def _remote_user(headers: Headers) -> str:
    """User name from HTTP Basic credentials, if any."""
    scheme, _, credentials = (headers.get("authorization") or "").partition(" ")
    if scheme.lower() != "basic" or not credentials:
        return "-"
    try:
        decoded = base64.b64decode(credentials, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return "-"
    user, _, _ = decoded.partition(":")
    return user or "-"


class AccessLogMiddleware:
    """Log every request that reaches this stage once its response is done."""

    def __init__(self, app: ASGIApp, logger: logging.Logger | None = None) -> None:
        self.app = app
        self.logger = logger or access_logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        status: int | None = None
        content_length: str | None = None

        async def send_and_record(message: Message) -> None:
            nonlocal status, content_length
            if message["type"] == "http.response.start":
                status = message["status"]
                content_length = Headers(raw=message.get("headers", [])).get("content-length")
            await send(message)

        try:
            await self.app(scope, receive, send_and_record)
        finally:
            self.logger.info(
                format_combined(scope, status, content_length, datetime.now(timezone.utc))
            )
