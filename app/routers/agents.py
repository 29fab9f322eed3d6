# =============================================================================
# app/routers/agents.py - Agent Execution Endpoints
# =============================================================================
# Runs platform agents for the authenticated user.
#
# Flow:
# 1. POST /execute runs the agent in-request and returns the result
# 2. POST /execute/async queues it on the Celery worker
# 3. GET /tasks/{task_id} polls a queued run
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

from agents.executor import AgentExecutor
from agents.models.execution import (
    AgentExecutionRequest,
    AgentExecutionResult,
    AgentPayloadContext,
)
from app.auth import AuthUser, ensure_company_member, get_current_user
from app.exceptions import TaskNotFoundError, TaskQueueUnavailableError
from core.models.task import TaskStatusResponse, TaskSubmitted

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================

class ExecuteAgentRequest(BaseModel):
    """Agent run requested over HTTP; the user comes from the token."""

    agent_id: str = Field(..., min_length=1, description="platform_agents.id")
    company_id: str | None = Field(default=None, description="Company to bill and write parameters for")
    input_data: dict[str, Any] = Field(default_factory=dict)
    context: str | None = Field(default=None, description="Free-text context for dynamic agents")
    language: str = "es"
    payload_context: AgentPayloadContext | None = Field(
        default=None,
        description="Company data used to build the agent's input payload",
    )

    def to_execution_request(self, user_id: str) -> AgentExecutionRequest:
        return AgentExecutionRequest(user_id=user_id, **self.model_dump())


def get_agent_executor() -> AgentExecutor:
    return AgentExecutor()


def task_owner(result) -> str | None:
    """User id recorded by the task in its progress meta or return value."""
    payload = result.info if result.status == "PROGRESS" else result.result
    return payload.get("requested_by") if isinstance(payload, dict) else None


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/execute", response_model=AgentExecutionResult)
def execute_agent(
    request: ExecuteAgentRequest,
    user: AuthUser = Depends(get_current_user),
    executor: AgentExecutor = Depends(get_agent_executor),
):
    """
    Execute an agent and wait for the result.

    Errors map to HTTP statuses by code, e.g. 402 INSUFFICIENT_CREDITS,
    403 AGENT_NOT_ENABLED or COMPANY_ACCESS_DENIED, 404 AGENT_NOT_FOUND,
    502 when the backend fails.
    """
    ensure_company_member(request.company_id, user)
    return executor.execute(request.to_execution_request(str(user.id)))


@router.post("/execute/async", response_model=TaskSubmitted, status_code=202)
def execute_agent_async(
    request: ExecuteAgentRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Queue an agent run on the worker.

    Returns a task_id for GET /agents/tasks/{task_id}.
    """
    ensure_company_member(request.company_id, user)

    from workers.tasks import execute_agent as execute_agent_task

    execution_request = request.to_execution_request(str(user.id))

    try:
        result = execute_agent_task.delay(execution_request.model_dump(mode="json"))
    except Exception as e:
        logger.error(f"Error queueing agent {request.agent_id}: {e}")
        raise TaskQueueUnavailableError(str(e))

    logger.info(f"Queued agent {request.agent_id} as task {result.id}")
    return TaskSubmitted(task_id=result.id, message="Agent execution queued")


@router.get("/tasks/{task_id}", response_model=TaskStatusResponse)
def get_task_status(
    task_id: Annotated[str, Path(description="Celery task ID")],
    user: AuthUser = Depends(get_current_user),
):
    """
    Get the status of a queued agent run.

    Returns the current state of the task:
    - PENDING: Task is waiting in queue
    - STARTED: Task has been picked up by a worker
    - PROGRESS: Task is running (includes progress percentage)
    - SUCCESS: Task completed (result holds the AgentExecutionResult)
    - FAILURE: Task failed

    Progress and results are only shown to the user who queued the task;
    anyone else gets 404.
    """
    from workers.celery_app import celery_app

    result = celery_app.AsyncResult(task_id)
    if result.status in ("PROGRESS", "SUCCESS") and task_owner(result) != str(user.id):
        raise TaskNotFoundError(task_id)

    response = TaskStatusResponse(task_id=task_id, status=result.status)

    if result.status == "PROGRESS":
        info = result.info or {}
        response.progress = info.get("percent", 0)
        response.message = info.get("message", "Processing...")

    elif result.status == "SUCCESS":
        response.result = result.result
        response.progress = 100
        response.message = "Complete"

    elif result.status == "FAILURE":
        # Unhandled worker errors carry no owner; keep their text server-side
        logger.error(f"Task {task_id} failed: {result.result}")
        response.error = "Task failed"
        response.message = "Failed"

    elif result.status == "PENDING":
        response.progress = 0
        response.message = "Waiting in queue..."

    elif result.status == "STARTED":
        response.progress = 0
        response.message = "Starting..."

    return response
