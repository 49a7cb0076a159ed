# =============================================================================
# lib/ - Shared Infrastructure
# =============================================================================
# This package contains infrastructure used by the app at startup:
# - database.py: Storage initialization run from the application lifespan
# =============================================================================
