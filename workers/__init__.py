# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# Background execution of agent runs and company enrichment webhooks.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (execute_agent, run_company_webhooks)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker -Q default,ai_tasks --loglevel=info
#
#   # Submit task (from API)
#   from workers.tasks import execute_agent
#   result = execute_agent.delay(request.model_dump(mode="json"))
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
