# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background versions of the API's long-running operations.
#
# Tasks:
# - execute_agent: Run a platform agent (same flow as POST /agents/execute)
# - run_company_webhooks: Company enrichment webhooks
#
# Both return a JSON-safe dict tagged with "requested_by" (the queuing
# user, checked when polling); failures come back as
# {"success": False, "error": {...}} rather than a FAILURE state.
# =============================================================================

import logging
from typing import Any

from celery import current_task, shared_task

logger = logging.getLogger(__name__)


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing...", requested_by: str | None = None):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
        requested_by: User who queued the task (only they may poll it)
    """
    if current_task:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100),
                "message": message,
                "requested_by": requested_by,
            }
        )


def error_payload(exc: Exception) -> dict[str, Any]:
    """Structured error for a task result."""
    from lib.supabase_client import SupabaseClientError
    from lib.utils import ApplicationError

    if isinstance(exc, (ApplicationError, SupabaseClientError)):
        return {
            "code": exc.code,
            "message": exc.message,
            "suggestion": exc.suggestion,
            "details": exc.details,
        }
    return {"code": "INTERNAL_ERROR", "message": str(exc)}


# =============================================================================
# Agent Execution Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.execute_agent")
def execute_agent(self, request: dict[str, Any]) -> dict[str, Any]:
    """
    Execute a platform agent.

    Args:
        request: AgentExecutionRequest as a JSON dict

    Returns:
        AgentExecutionResult as a dict, or {"success": False, "error": {...}}
    """
    from agents.executor import AgentExecutor
    from agents.models.execution import AgentExecutionRequest

    requested_by = request.get("user_id")

    try:
        update_progress(1, 2, "Running agent...", requested_by=requested_by)
        execution_request = AgentExecutionRequest.model_validate(request)
        result = AgentExecutor().execute(execution_request)
        update_progress(2, 2, "Saving results...", requested_by=requested_by)
        return {**result.model_dump(mode="json"), "requested_by": requested_by}

    except Exception as e:
        logger.exception(f"Agent task failed for agent {request.get('agent_id')}: {e}")
        return {
            "success": False,
            "agent_id": request.get("agent_id"),
            "error": error_payload(e),
            "requested_by": requested_by,
        }


# =============================================================================
# Company Webhooks Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.run_company_webhooks")
def run_company_webhooks(
    self,
    user_id: str,
    request: dict[str, Any],
    company_id: str | None = None,
) -> dict[str, Any]:
    """
    Run the company enrichment webhooks.

    Args:
        user_id: User whose company is enriched
        request: CompanyWebhooksRequest as a JSON dict
        company_id: Company to update; defaults to the user's primary company
    """
    from core.models.webhook import CompanyWebhooksRequest
    from core.services.company_webhooks import CompanyWebhookService

    try:
        update_progress(1, 1, "Calling enrichment webhooks...", requested_by=user_id)
        webhooks_request = CompanyWebhooksRequest.model_validate(request)
        response = CompanyWebhookService.execute_company_webhooks(
            user_id, webhooks_request, company_id
        )
        return {**response.model_dump(mode="json"), "requested_by": user_id}

    except Exception as e:
        logger.exception(f"Company webhooks task failed for user {user_id}: {e}")
        return {
            "success": False,
            "error": error_payload(e),
            "requested_by": user_id,
        }
