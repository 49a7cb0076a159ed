# =============================================================================
# app/routers/pages.py - Page Routes
# =============================================================================
# Serves the storefront and admin HTML documents from the static root.
#
# The admin pages are served unconditionally: there is no server-side
# authorization here. The dashboard document checks the admin session in
# the browser, and the /api/admin handler group enforces access to data.
# =============================================================================

import logging
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse, RedirectResponse

logger = logging.getLogger(__name__)

# Exact path -> document relative to the static root
PAGE_ROUTES: dict[str, str] = {
    "/": "index.html",
    "/launcher": "launcher.html",
    "/admin": "admin/login.html",
    "/admin/": "admin/login.html",
    "/admin/login.html": "admin/login.html",
    "/admin/dashboard": "admin/index.html",
    "/order-confirmation": "order-confirmation.html",
}

# Exact path -> redirect target
PAGE_REDIRECTS: dict[str, str] = {
    "/start": "/launcher",
}


def build_pages_router(static_root: Path) -> APIRouter:
    """
    Create the router for the page table.

    Args:
        static_root: Directory holding the HTML documents

    Returns:
        APIRouter with one GET/HEAD route per page and redirect
    """
    router = APIRouter(redirect_slashes=False)

    for path, document in PAGE_ROUTES.items():
        router.add_api_route(
            path,
            _document_endpoint(static_root / document),
            methods=["GET", "HEAD"],
            response_class=FileResponse,
            include_in_schema=False,
            name=f"page:{path}",
        )

    for path, target in PAGE_REDIRECTS.items():
        router.add_api_route(
            path,
            _redirect_endpoint(target),
            methods=["GET", "HEAD"],
            response_class=RedirectResponse,
            include_in_schema=False,
            name=f"redirect:{path}",
        )

    return router


def _document_endpoint(document: Path):
    async def serve_document() -> FileResponse:
        if not document.is_file():
            raise FileNotFoundError(f"Page document not found: {document.name}")
        return FileResponse(document, media_type="text/html")

    return serve_document


def _redirect_endpoint(target: str):
    async def redirect() -> RedirectResponse:
        return RedirectResponse(url=target, status_code=302)

    return redirect
