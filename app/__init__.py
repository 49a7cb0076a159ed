# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the FastAPI web application:
# - main.py: App entry point, middleware chain, exception handlers, lifespan
# - config.py: Environment variable loading and settings
# - exceptions.py: Error types and the JSON error shape
# - middleware/: One module per request pipeline stage
# - routers/: Route tables (API group mounts, pages, health)
#
# The app layer is thin - it handles HTTP concerns and delegates
# framework-agnostic logic to the core/ package.
# =============================================================================
