# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the ShoppingDmart backend:
# - test_rate_limit.py, test_security_headers.py, test_cors.py,
#   test_body.py, test_access_log.py: One module per pipeline stage
# - test_routing.py: Static precedence, pages, API groups and the 404 contract
# - test_errors.py, test_health.py, test_config.py, test_lifespan.py
#
# Run tests with: pytest
# =============================================================================
