# =============================================================================
# app/routers/ - Route Definitions
# =============================================================================
# This package contains the dispatcher's route tables:
# - groups.py: /api/* prefix mounts for the external handler groups
# - pages.py: Exact page routes (HTML documents and the /start redirect)
# - health.py: Health check endpoint
#
# Each table is mounted in main.py, after the static asset stage.
# =============================================================================

from . import groups
from . import health
from . import pages

__all__ = [
    "groups",
    "health",
    "pages",
]
