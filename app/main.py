# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the composition root of the ShoppingDmart backend. It builds the
# request pipeline and mounts the route tables:
#
#   request
#     -> security headers      (CSP off unless CSP_ENABLED)
#     -> rate limiter          (429 past the per-client allowance)
#     -> access log            (combined format)
#     -> CORS                  (exact-match allow-list, credentials)
#     -> body decoder          (JSON / URL-encoded, 10 MB ceiling)
#     -> error handler         (any exception below -> 500 JSON)
#     -> static assets         (regular files under STATIC_ROOT)
#     -> router                (API groups, pages, /api/health)
#     -> 404 handler           ({"error": "Route not found", ...})
#
# Usage:
#   uvicorn app.main:app
#   python -m app.main
# =============================================================================

import logging
from collections.abc import Callable, Mapping
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware import Middleware

from app.config import Settings, settings as default_settings
from app.exceptions import (
    ShoppingDmartException,
    http_exception_handler,
    shoppingdmart_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.middleware import (
    AccessLogMiddleware,
    BodyDecoderMiddleware,
    ErrorHandlerMiddleware,
    RateLimitMiddleware,
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
    StaticAssetMiddleware,
)
from app.routers import health
from app.routers.groups import build_route_groups
from app.routers.pages import build_pages_router
from core.rate_limit import FixedWindowRateLimiter
from lib.database import initialize_database

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _log_banner(settings: Settings) -> None:
    base_url = f"http://localhost:{settings.PORT}"
    logger.info(f"{settings.APP_NAME} Backend Server running on port {settings.PORT}")
    logger.info(f"Website: {base_url}")
    logger.info(f"Admin Panel: {base_url}/admin")
    logger.info(f"API Health: {base_url}/api/health")


def build_middleware(settings: Settings, limiter: FixedWindowRateLimiter) -> list[Middleware]:
    """
    Build the middleware chain, outermost stage first.

    Every request passes these stages in list order before routing.
    """
    return [
        Middleware(
            SecurityHeadersMiddleware,
            config=SecurityHeadersConfig.with_csp(settings.CSP_ENABLED),
        ),
        Middleware(
            RateLimitMiddleware,
            limiter=limiter,
            trust_proxy=settings.TRUST_PROXY,
            exempt_paths=settings.rate_limit_exempt_paths,
        ),
        Middleware(AccessLogMiddleware),
        Middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(BodyDecoderMiddleware, max_body_size=settings.max_body_size_bytes),
        Middleware(ErrorHandlerMiddleware, expose_errors=settings.is_development),
        Middleware(StaticAssetMiddleware, directory=settings.STATIC_ROOT),
    ]


def create_app(
    settings: Settings | None = None,
    route_handlers: Mapping[str, APIRouter] | None = None,
    storage_initializer: Callable[[], object] | None = None,
    rate_limiter: FixedWindowRateLimiter | None = None,
) -> FastAPI:
    """
    Build the application: middleware chain, route table, handlers.

    Everything configured here is fixed once this returns.

    Args:
        settings: Settings to use (defaults to the environment's)
        route_handlers: Router per API group name ("orders", "auth", ...)
        storage_initializer: Called once at startup, before serving
            (defaults to initializing the SQLite database)
        rate_limiter: Limiter to use (defaults to one built from settings)

    Returns:
        FastAPI: The configured application
    """
    settings = settings or default_settings
    route_groups = build_route_groups(route_handlers)
    if rate_limiter is not None:
        limiter = rate_limiter
    else:
        limiter = FixedWindowRateLimiter(
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            max_clients=settings.RATE_LIMIT_MAX_CLIENTS,
        )
    if storage_initializer is not None:
        initialize_storage = storage_initializer
    else:
        initialize_storage = lambda: initialize_database(settings.DATABASE_PATH)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        - Startup: Initialize storage (failures abort startup), log the banner
        - Shutdown: Log
        """
        logger.info(f"Starting {settings.APP_NAME} backend in {settings.ENVIRONMENT} mode")
        logger.info(f"CORS origins: {settings.cors_origins_list}")
        initialize_storage()
        _log_banner(settings)

        yield

        logger.info(f"Shutting down {settings.APP_NAME} backend")

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Storefront, admin and API request pipeline",
        version=settings.APP_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
        lifespan=lifespan,
        middleware=build_middleware(settings, limiter),
    )

    app.state.settings = settings
    app.state.rate_limiter = limiter
    app.state.route_groups = route_groups

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    app.add_exception_handler(ShoppingDmartException, shoppingdmart_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # =========================================================================
    # Routers
    # =========================================================================

    # API handler groups, longest prefix first
    for group in route_groups:
        app.include_router(group.router, prefix=group.prefix, tags=[group.name])

    # Storefront and admin pages
    app.include_router(build_pages_router(settings.STATIC_ROOT))

    # Health check endpoint
    app.include_router(health.router, prefix="/api", tags=["Health"])

    return app


app = create_app()


def run() -> None:
    """Serve the default app with uvicorn on HOST:PORT."""
    uvicorn.run(
        app,
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level="debug" if default_settings.DEBUG else "info",
    )


if __name__ == "__main__":
    run()
