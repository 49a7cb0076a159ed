# =============================================================================
# app/middleware/rate_limit.py - Rate Limiting Stage
# =============================================================================
# Per-client fixed-window limiting in front of everything except the
# security headers. Rejected requests never reach logging, CORS, body
# parsing or any route.
#
# Every path is counted, /api/health and CORS preflights included, unless
# it is listed in RATE_LIMIT_EXEMPT_PATHS.
#
# Limits are per process: with several uvicorn workers each one keeps its
# own counters.
# =============================================================================

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from app.exceptions import RateLimitExceededError
from core.rate_limit import FixedWindowRateLimiter, normalize_client_identity

logger = logging.getLogger(__name__)


def client_identity(request: Request, trust_proxy: bool = False) -> str:
    """
    Identify the client a request counts against.

    Uses the socket peer address. The first X-Forwarded-For hop is only
    used when the app runs behind a trusted proxy.
    """
    if trust_proxy:
        forwarded = (request.headers.get("x-forwarded-for") or "").strip()
        if forwarded:
            return normalize_client_identity(forwarded.split(",")[0])
    host = request.client.host if request.client else None
    return normalize_client_identity(host)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject clients that exceed their request allowance with 429.

    Allowed responses carry X-RateLimit-Limit / -Remaining / -Reset so
    clients can pace themselves.
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: FixedWindowRateLimiter,
        trust_proxy: bool = False,
        exempt_paths: frozenset[str] = frozenset(),
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.trust_proxy = trust_proxy
        self.exempt_paths = exempt_paths

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path in self.exempt_paths:
            return await call_next(request)

        identity = client_identity(request, self.trust_proxy)
        decision = self.limiter.hit(identity)

        if not decision.allowed:
            logger.warning(
                f"Rate limit exceeded: client={identity} method={request.method} "
                f"path={path} retry_after={decision.reset_after}s"
            )
            return RateLimitExceededError(decision.limit, decision.reset_after).to_response()

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Reset"] = str(decision.reset_after)
        return response
