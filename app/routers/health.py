# =============================================================================
# app/routers/health.py - Health Check Endpoint
# =============================================================================
# Provides the health check endpoint for monitoring and load balancers.
# It goes through the same rate limiter as every other path.
# =============================================================================

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from app.dependencies import SettingsDep

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    message: str
    timestamp: str
    version: str


# =============================================================================
# Timestamps
# =============================================================================

class MonotonicTimestamps:
    """
    UTC ISO-8601 timestamps that strictly increase between calls.

    Two calls inside the same microsecond (or across a backwards clock
    step) get the previous value plus one microsecond.
    """

    def __init__(self) -> None:
        self._last: datetime | None = None

    def next(self, now: datetime | None = None) -> str:
        current = now or datetime.now(timezone.utc)
        if self._last is not None and current <= self._last:
            current = self._last + timedelta(microseconds=1)
        self._last = current
        return current.isoformat(timespec="microseconds").replace("+00:00", "Z")


_timestamps = MonotonicTimestamps()


# =============================================================================
# Endpoints
# =============================================================================

@router.api_route("/health", methods=["GET", "HEAD"], response_model=HealthResponse)
async def health_check(settings: SettingsDep):
    """
    Health check endpoint.

    Returns a fixed payload with a fresh timestamp on every call.
    """
    return HealthResponse(
        status="OK",
        message=f"{settings.APP_NAME} Backend is running",
        timestamp=_timestamps.next(),
        version=settings.APP_VERSION,
    )
