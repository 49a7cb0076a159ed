# =============================================================================
# app/middleware/ - Request Pipeline Stages
# =============================================================================
# One module per stage, applied in this order by app.main.create_app():
# - security.py: Security headers (CSP off unless enabled)
# - rate_limit.py: Per-client fixed-window rate limiting (429)
# - access_log.py: Combined-format access log
# - (CORS: Starlette's CORSMiddleware, configured in main.py)
# - body.py: JSON / URL-encoded body decoding with a size ceiling
# - errors.py: Catch-all 500 handler for everything below it
# - static.py: Static assets, ahead of the router
# =============================================================================

from .access_log import AccessLogMiddleware
from .body import BodyDecoderMiddleware
from .errors import ErrorHandlerMiddleware
from .rate_limit import RateLimitMiddleware
from .security import SecurityHeadersConfig, SecurityHeadersMiddleware
from .static import StaticAssetMiddleware

__all__ = [
    "AccessLogMiddleware",
    "BodyDecoderMiddleware",
    "ErrorHandlerMiddleware",
    "RateLimitMiddleware",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "StaticAssetMiddleware",
]
