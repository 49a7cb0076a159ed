# =============================================================================
# app/middleware/body.py - Request Body Decoder Stage
# =============================================================================
# Reads JSON and URL-encoded request bodies once, enforces the size ceiling
# on them and parses them before any route sees the request. Bodies of any
# other media type are neither read nor limited here.
#
# - Declared Content-Length over the ceiling   -> 413, body never read
# - Streamed body crossing the ceiling          -> 413, reading stops
# - Malformed JSON / non-object-or-array JSON   -> 400
# - Charset other than UTF-*                    -> 415
# - More than parameter_limit form fields       -> 413
#
# The parsed value lands in scope["state"]["body"] (request.state.body);
# empty bodies and other content types get {}. Decoded raw bytes are
# replayed to the app so handlers can still call request.body().
# =============================================================================

import json
import logging
from typing import Any

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import (
    BodyDecodeError,
    MalformedBodyError,
    PayloadTooLargeError,
    UnsupportedCharsetError,
)
from core.forms import DEFAULT_PARAMETER_LIMIT, TooManyParametersError, parse_urlencoded

logger = logging.getLogger(__name__)

JSON_TYPE = "application/json"
FORM_TYPE = "application/x-www-form-urlencoded"
DEFAULT_MAX_BODY_SIZE = 10 * 1024 * 1024


def parse_content_type(value: str | None) -> tuple[str, dict[str, str]]:
    """
    Split a Content-Type header into media type and parameters.

    Example:
        parse_content_type("application/json; charset=UTF-8")
        # ("application/json", {"charset": "utf-8"})
    """
    if not value:
        return "", {}
    media_type, *raw_params = value.split(";")
    params: dict[str, str] = {}
    for raw in raw_params:
        name, sep, param_value = raw.partition("=")
        if sep:
            params[name.strip().lower()] = param_value.strip().strip('"').lower()
    return media_type.strip().lower(), params


class BodyDecoderMiddleware:
    """
    Parse JSON and URL-encoded request bodies up to a size ceiling.

    Args:
        app: Downstream ASGI app
        max_body_size: Ceiling in bytes
        parameter_limit: Maximum URL-encoded parameters
    """

    def __init__(
        self,
        app: ASGIApp,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
        parameter_limit: int = DEFAULT_PARAMETER_LIMIT,
    ) -> None:
        self.app = app
        self.max_body_size = max_body_size
        self.parameter_limit = parameter_limit

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        media_type, _ = parse_content_type(headers.get("content-type"))
        if media_type not in (JSON_TYPE, FORM_TYPE):
            # Uploads of other types stream through unread and unlimited
            scope.setdefault("state", {})["body"] = {}
            await self.app(scope, receive, send)
            return

        try:
            body = await self._read_body(headers, receive)
            parsed = self.decode(headers.get("content-type"), body)
        except BodyDecodeError as exc:
            logger.info(
                f"Rejected body for {scope.get('method')} {scope.get('path')}: "
                f"{exc.status_code} {exc.message}"
            )
            await exc.to_response()(scope, receive, send)
            return

        scope.setdefault("state", {})["body"] = parsed
        await self.app(scope, _replay(body, receive), send)

    async def _read_body(self, headers: Headers, receive: Receive) -> bytes:
        declared = headers.get("content-length")
        if declared is not None:
            try:
                length = int(declared)
            except ValueError:
                raise MalformedBodyError("invalid Content-Length header")
            if length > self.max_body_size:
                raise PayloadTooLargeError(self.max_body_size)

        chunks: list[bytes] = []
        received = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > self.max_body_size:
                raise PayloadTooLargeError(self.max_body_size)
            chunks.append(chunk)
            if not message.get("more_body", False):
                break
        return b"".join(chunks)

    def decode(self, content_type: str | None, body: bytes) -> Any:
        """
        Parse a body according to its Content-Type.

        Returns:
            dict or list for JSON, dict for forms, {} for anything else

        Raises:
            BodyDecodeError: For malformed or unreadable bodies
        """
        media_type, params = parse_content_type(content_type)
        if not body or media_type not in (JSON_TYPE, FORM_TYPE):
            return {}

        if media_type == JSON_TYPE:
            return self._decode_json(body, params.get("charset", "utf-8"))
        return self._decode_form(body, params.get("charset", "utf-8"))

    def _decode_json(self, body: bytes, charset: str) -> Any:
        if not charset.startswith("utf-"):
            raise UnsupportedCharsetError(charset)
        text = _decode_text(body, charset)

        stripped = text.lstrip()
        if not stripped:
            return {}
        # Strict mode: only objects and arrays at the top level
        if stripped[0] not in "{[":
            raise MalformedBodyError(f'Unexpected token "{stripped[0]}" at start of JSON body')

        try:
            return json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise MalformedBodyError(f"Malformed JSON body: {exc.msg} at position {exc.pos}")

    def _decode_form(self, body: bytes, charset: str) -> dict[str, Any]:
        if charset != "utf-8":
            raise UnsupportedCharsetError(charset)
        try:
            return parse_urlencoded(_decode_text(body, charset), self.parameter_limit)
        except TooManyParametersError as exc:
            raise PayloadTooLargeError(self.max_body_size, message=str(exc))


def _decode_text(body: bytes, charset: str) -> str:
    try:
        return body.decode(charset)
    except LookupError:
        raise UnsupportedCharsetError(charset)
    except UnicodeDecodeError as exc:
        raise MalformedBodyError(f"Body is not valid {charset}: {exc.reason}")


def _replay(body: bytes, receive: Receive) -> Receive:
    """Receive callable that hands the buffered body to the app first."""
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay
