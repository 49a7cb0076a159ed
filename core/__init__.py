# =============================================================================
# core/ - Framework-Agnostic Pipeline Logic
# =============================================================================
# This package contains the pieces of the request pipeline that do not
# depend on HTTP framework types:
# - rate_limit.py: Fixed-window per-client rate limiter and identity normalization
# - forms.py: Extended URL-encoded form parser
#
# Code in this package should NOT import from FastAPI or Starlette.
# This keeps the logic testable and reusable.
# =============================================================================
