# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up test environment variables before any imports
# - Builds apps from explicit Settings so tests never depend on a local .env
# - Provides a fake clock for rate-limit window tests
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")

from pathlib import Path

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app


# =============================================================================
# Helpers
# =============================================================================

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> Settings:
    """Settings with defaults only, plus overrides (no .env file)."""
    overrides.setdefault("ENVIRONMENT", "test")
    return Settings(_env_file=None, **overrides)


def build_client(
    settings: Settings | None = None,
    route_handlers: dict[str, APIRouter] | None = None,
    **kwargs,
) -> TestClient:
    """TestClient for an app with storage initialization stubbed out."""
    kwargs.setdefault("storage_initializer", lambda: None)
    app = create_app(
        settings=settings or make_settings(),
        route_handlers=route_handlers,
        **kwargs,
    )
    return TestClient(app)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_clock():
    """A clock tests can move forward."""
    return FakeClock()


@pytest.fixture
def client():
    """Client for an app with default settings and no handler groups."""
    return build_client()


@pytest.fixture
def static_root(tmp_path: Path) -> Path:
    """A static root with every page document plus a few assets."""
    (tmp_path / "admin").mkdir()
    (tmp_path / "css").mkdir()
    (tmp_path / "index.html").write_text("<h1>home</h1>")
    (tmp_path / "launcher.html").write_text("<h1>launcher</h1>")
    (tmp_path / "order-confirmation.html").write_text("<h1>confirmed</h1>")
    (tmp_path / "admin" / "login.html").write_text("<h1>admin login</h1>")
    (tmp_path / "admin" / "index.html").write_text("<h1>admin dashboard</h1>")
    (tmp_path / "css" / "site.css").write_text("body { margin: 0; }")
    (tmp_path / ".env").write_text("SECRET=1")
    return tmp_path
