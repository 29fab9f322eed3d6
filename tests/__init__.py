# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Buildera API:
# - test_edge_functions.py: Retries, caching and batching of edge function calls
# - test_executor.py / test_*_runner.py: Agent execution paths
# - test_company_webhooks.py / test_inbound_email.py: Core services
# - test_routers.py / test_auth.py: API endpoints and token verification
# - test_tasks.py: Celery tasks and worker configuration
#
# Run tests with: pytest
# =============================================================================
