# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers (including mounted handler groups)
# using Depends().
# =============================================================================

from typing import Annotated, Any

from fastapi import Depends, Request

from app.config import Settings


def get_app_settings(request: Request) -> Settings:
    """
    Get the settings the running app was built with.

    Returns the instance stored on app.state by create_app().
    """
    return request.app.state.settings


def get_parsed_body(request: Request) -> Any:
    """
    Get the request body as parsed by the body decoder stage.

    Returns {} when the decoder did not run or the body was empty.
    """
    return getattr(request.state, "body", {})


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ParsedBodyDep = Annotated[Any, Depends(get_parsed_body)]
