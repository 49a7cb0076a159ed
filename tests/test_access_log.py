# =============================================================================
# tests/test_access_log.py - Access Log Tests
# =============================================================================

import base64
import logging
from datetime import datetime, timezone

from app.middleware.access_log import format_combined
from tests.conftest import build_client, make_settings

WHEN = datetime(2026, 10, 18, 10, 55, 36, tzinfo=timezone.utc)


def make_scope(**overrides) -> dict:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/health",
        "query_string": b"",
        "http_version": "1.1",
        "client": ("127.0.0.1", 51000),
        "headers": [(b"user-agent", b"curl/8.0")],
    }
    scope.update(overrides)
    return scope


def access_lines(caplog) -> list[str]:
    return [record.getMessage() for record in caplog.records if record.name == "app.access"]


class TestFormatCombined:
    """Test line rendering."""

    def test_combined_line(self):
        line = format_combined(make_scope(), 200, "97", WHEN)

        assert line == (
            '127.0.0.1 - - [18/Oct/2026:10:55:36 +0000] "GET /api/health HTTP/1.1" '
            '200 97 "-" "curl/8.0"'
        )

    def test_query_and_referer(self):
        scope = make_scope(
            path="/launcher",
            query_string=b"ref=home",
            headers=[(b"referer", b"http://localhost:3000/")],
        )

        line = format_combined(scope, 200, None, WHEN)

        assert '"GET /launcher?ref=home HTTP/1.1" 200 -' in line
        assert line.endswith('"http://localhost:3000/" "-"')

    def test_basic_auth_user(self):
        token = base64.b64encode(b"admin:secret").decode()
        scope = make_scope(headers=[(b"authorization", f"Basic {token}".encode())])

        assert format_combined(scope, 200, "2", WHEN).startswith("127.0.0.1 - admin [")

    def test_malformed_basic_auth(self):
        scope = make_scope(headers=[(b"authorization", b"Basic !!!")])

        assert format_combined(scope, 200, "2", WHEN).startswith("127.0.0.1 - - [")

    def test_missing_status_and_client(self):
        line = format_combined(make_scope(client=None), None, None, WHEN)

        assert line.startswith("- - - [")
        assert '"GET /api/health HTTP/1.1" - -' in line


class TestAccessLogMiddleware:
    """Test logging on real requests."""

    def test_one_line_per_request(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="app.access"):
            client.get("/api/health")
            client.get("/missing")

        lines = access_lines(caplog)
        assert len(lines) == 2
        assert '"GET /api/health HTTP/1.1" 200' in lines[0]
        assert '"GET /missing HTTP/1.1" 404' in lines[1]

    def test_error_responses_logged(self, static_root, caplog):
        client = build_client(make_settings(STATIC_ROOT=static_root / "absent"))

        with caplog.at_level(logging.INFO, logger="app.access"):
            client.get("/launcher")

        assert '"GET /launcher HTTP/1.1" 500' in access_lines(caplog)[0]

    def test_rate_limited_requests_not_logged(self, caplog):
        client = build_client(make_settings(RATE_LIMIT_MAX_REQUESTS=1))

        with caplog.at_level(logging.INFO, logger="app.access"):
            assert client.get("/api/health").status_code == 200
            assert client.get("/api/health").status_code == 429

        assert len(access_lines(caplog)) == 1
