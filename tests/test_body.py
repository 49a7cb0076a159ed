# =============================================================================
# tests/test_body.py - Body Decoder Tests
# =============================================================================
# This module contains tests for:
# - JSON and URL-encoded parsing into request.state.body
# - Size ceiling (declared and streamed), malformed JSON, charsets
# - Rejections never reaching a route handler
# =============================================================================

import json

import pytest
from fastapi import APIRouter, Request
from fastapi.testclient import TestClient
from starlette.responses import JSONResponse

from app.dependencies import ParsedBodyDep
from app.middleware.body import BodyDecoderMiddleware, parse_content_type
from tests.conftest import build_client, make_settings

TEN_MB = 10 * 1024 * 1024


@pytest.fixture
def calls():
    return []


@pytest.fixture
def echo_client(calls):
    """App with an orders group that echoes the parsed and raw body."""
    router = APIRouter()

    @router.post("/echo")
    async def echo(request: Request, body: ParsedBodyDep):
        calls.append(1)
        raw = await request.body()
        return {"body": body, "raw_length": len(raw)}

    return build_client(route_handlers={"orders": router})


class TestParseContentType:
    """Test Content-Type splitting."""

    def test_with_charset(self):
        assert parse_content_type("application/json; charset=UTF-8") == (
            "application/json", {"charset": "utf-8"}
        )

    def test_quoted_parameter(self):
        assert parse_content_type('text/plain; charset="latin1"')[1] == {"charset": "latin1"}

    def test_missing(self):
        assert parse_content_type(None) == ("", {})


class TestJsonBodies:
    """Test JSON decoding."""

    def test_object(self, echo_client):
        response = echo_client.post("/api/orders/echo", json={"sku": "X1", "qty": 2})

        assert response.status_code == 200
        assert response.json()["body"] == {"sku": "X1", "qty": 2}

    def test_array(self, echo_client):
        response = echo_client.post("/api/orders/echo", json=[1, 2, 3])

        assert response.json()["body"] == [1, 2, 3]

    def test_raw_body_still_readable(self, echo_client):
        payload = json.dumps({"a": 1}).encode()
        response = echo_client.post(
            "/api/orders/echo", content=payload, headers={"Content-Type": "application/json"}
        )

        assert response.json()["raw_length"] == len(payload)

    def test_malformed_json_is_400(self, echo_client, calls):
        response = echo_client.post(
            "/api/orders/echo",
            content=b'{"sku": ',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Bad request"
        assert calls == []

    @pytest.mark.parametrize("payload", [b'"just a string"', b"42", b"true"])
    def test_strict_top_level(self, echo_client, calls, payload):
        response = echo_client.post(
            "/api/orders/echo", content=payload, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert calls == []

    def test_unsupported_charset_is_415(self, echo_client, calls):
        response = echo_client.post(
            "/api/orders/echo",
            content=b"{}",
            headers={"Content-Type": "application/json; charset=latin1"},
        )

        assert response.status_code == 415
        assert response.json()["message"] == 'unsupported charset "LATIN1"'
        assert calls == []

    def test_invalid_utf8_is_400(self, echo_client):
        response = echo_client.post(
            "/api/orders/echo",
            content=b'{"name": "\xff"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_empty_body_is_empty_dict(self, echo_client):
        response = echo_client.post("/api/orders/echo", headers={"Content-Type": "application/json"})

        assert response.json()["body"] == {}


class TestFormBodies:
    """Test URL-encoded decoding."""

    def test_extended_form(self, echo_client):
        response = echo_client.post(
            "/api/orders/echo",
            content=b"customer[name]=Ann&items[]=a&items[]=b",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.json()["body"] == {"customer": {"name": "Ann"}, "items": ["a", "b"]}

    def test_too_many_parameters_is_413(self, echo_client, calls):
        body = "&".join(f"k{index}=v" for index in range(1001))
        response = echo_client.post(
            "/api/orders/echo",
            content=body.encode(),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 413
        assert calls == []


class TestOtherBodies:
    """Bodies that are not JSON or forms pass through unparsed."""

    def test_text_body_parses_to_empty_dict(self, echo_client):
        response = echo_client.post(
            "/api/orders/echo", content=b"hello", headers={"Content-Type": "text/plain"}
        )

        assert response.json() == {"body": {}, "raw_length": 5}


class TestSizeCeiling:
    """Test the 10 MB ceiling."""

    def test_body_over_ceiling_is_413(self, echo_client, calls):
        response = echo_client.post(
            "/api/orders/echo",
            content=b"[" + b"1," * (TEN_MB // 2) + b"1]",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 413
        assert response.json()["error"] == "Payload too large"
        assert calls == []

    def test_body_at_ceiling_is_accepted(self, echo_client):
        padding = TEN_MB - len(b'{"pad": ""}')
        payload = b'{"pad": "' + b"x" * padding + b'"}'
        assert len(payload) == TEN_MB

        response = echo_client.post(
            "/api/orders/echo", content=payload, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 200
        assert response.json()["raw_length"] == TEN_MB

    def test_other_media_types_are_not_limited(self, calls):
        """Uploads that are not JSON or forms reach the handler unread."""
        router = APIRouter()

        @router.post("/upload")
        async def upload(request: Request, body: ParsedBodyDep):
            calls.append(1)
            raw = await request.body()
            return {"body": body, "raw_length": len(raw)}

        client = build_client(
            make_settings(MAX_BODY_SIZE_MB=1),
            route_handlers={"apk": router},
        )
        payload = b"\x00" * (2 * 1024 * 1024)

        response = client.post(
            "/api/apk/upload",
            content=payload,
            headers={"Content-Type": "application/octet-stream"},
        )

        assert response.status_code == 200
        assert response.json() == {"body": {}, "raw_length": len(payload)}
        assert calls == [1]

    def test_json_over_configured_ceiling_still_rejected(self, calls):
        client = build_client(make_settings(MAX_BODY_SIZE_MB=1))

        response = client.post(
            "/api/apk/upload",
            content=b'{"pad": "' + b"x" * (1024 * 1024) + b'"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 413


class TestBodyDecoderMiddleware:
    """Drive the middleware directly with a small ceiling."""

    @staticmethod
    def make_client(calls: list) -> TestClient:
        async def inner(scope, receive, send):
            calls.append(scope["state"]["body"])
            await JSONResponse({"body": scope["state"]["body"]})(scope, receive, send)

        return TestClient(BodyDecoderMiddleware(inner, max_body_size=16))

    def test_streamed_body_crossing_ceiling(self, calls):
        client = self.make_client(calls)

        def chunks():
            yield b'{"a": "'
            yield b"x" * 20
            yield b'"}'

        response = client.post("/", content=chunks(), headers={"Content-Type": "application/json"})

        assert response.status_code == 413
        assert calls == []

    def test_declared_length_over_ceiling(self, calls):
        client = self.make_client(calls)

        response = client.post(
            "/", content=b"x" * 17, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 413
        assert calls == []

    def test_invalid_content_length(self, calls):
        client = self.make_client(calls)

        response = client.post(
            "/",
            content=b"{}",
            headers={"Content-Type": "application/json", "Content-Length": "abc"},
        )

        assert response.status_code == 400
        assert calls == []

    def test_small_body_passes(self, calls):
        client = self.make_client(calls)

        response = client.post("/", json={"a": 1})

        assert response.status_code == 200
        assert calls == [{"a": 1}]
