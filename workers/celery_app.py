# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# The worker that runs queued agent executions and company enrichment
# webhooks. Broker and result backend settings live in workers/config.py.
#
# Usage:
#   celery -A workers.celery_app worker -Q default,ai_tasks --loglevel=info
#   celery -A workers.celery_app status
# =============================================================================

import logging
import os
import sys

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun
from dotenv import load_dotenv

# .env must be loaded before app.config builds settings
load_dotenv()

from app.config import settings  # noqa: E402

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _redact(url: str) -> str:
    """Drop credentials from a broker URL for logging."""
    return url.split("@")[-1] if "@" in url else url


def create_celery_app() -> Celery:
    app = Celery("buildera_worker", include=["workers.tasks"])
    app.config_from_object("workers.config:CeleryConfig")

    logger.info(f"Celery app created with broker: {_redact(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


# =============================================================================
# Celery Signals (Lifecycle Hooks)
# =============================================================================

def _describe(args, kwargs) -> str:
    """Agent or user the task is about, for log lines."""
    payload = args[0] if args else (kwargs or {}).get("request")
    if isinstance(payload, dict) and payload.get("agent_id"):
        return f"agent {payload['agent_id']}"
    if args and isinstance(args[0], str):
        return f"user {args[0]}"
    return "-"


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **extra):
    logger.info(f"Task started: {task.name} [{task_id}] ({_describe(args, kwargs)})")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, retval=None, state=None, **extra):
    success = retval.get("success") if isinstance(retval, dict) else None
    logger.info(f"Task completed: {task.name} [{task_id}] - State: {state}, success: {success}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, traceback=None, **extra):
    logger.error(f"Task failed: {sender.name} [{task_id}] - Error: {exception}")


if __name__ == "__main__":
    celery_app.start()
