# =============================================================================
# app/middleware/static.py - Static Asset Stage
# =============================================================================
# Serves regular files under the static root for GET/HEAD requests, ahead of
# every dynamic route. Anything else falls through to the router:
#
#   GET /launcher.html        -> public/launcher.html (file exists)
#   GET /admin/login.html     -> public/admin/login.html, before the page route
#   GET /admin                -> directory, falls through to the page route
#   GET /.env, GET /../x      -> never served, falls through (404)
#
# File lookups go through Starlette's StaticFiles so content types, ETags
# and conditional requests behave the same as a mounted StaticFiles app.
# =============================================================================

import logging
import os
import stat
from pathlib import Path

import anyio
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)


class StaticAssetMiddleware:
    """
    Serve files from `directory` when one exists at the request path.

    Args:
        app: Downstream ASGI app (the router)
        directory: Static root
    """

    def __init__(self, app: ASGIApp, directory: str | Path) -> None:
        self.app = app
        self.directory = Path(directory)
        self.files = StaticFiles(directory=self.directory, check_dir=False)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in ("GET", "HEAD"):
            await self.app(scope, receive, send)
            return

        relative = self.relative_path(scope["path"])
        if relative is None:
            await self.app(scope, receive, send)
            return

        full_path, stat_result = await anyio.to_thread.run_sync(self.files.lookup_path, relative)
        if stat_result is None or not stat.S_ISREG(stat_result.st_mode):
            await self.app(scope, receive, send)
            return

        logger.debug(f"Serving static asset {full_path}")
        response = self.files.file_response(full_path, stat_result, scope)
        await response(scope, receive, send)

    @staticmethod
    def relative_path(path: str) -> str | None:
        """
        Map a URL path to a path relative to the static root.

        Returns None for the root itself and for dotfile segments.
        """
        segments = [segment for segment in path.split("/") if segment]
        if not segments or any(segment.startswith(".") for segment in segments):
            return None
        return os.path.normpath(os.path.join(*segments))
