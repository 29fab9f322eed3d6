# =============================================================================
# core/models/task.py - Background Task Schemas
# =============================================================================
# Models for work handed to the Celery worker:
# - TaskSubmitted: returned immediately with the task id for polling
# - TaskStatusResponse: state/progress/result when polling
# =============================================================================

from typing import Any

from pydantic import BaseModel, Field


class TaskSubmitted(BaseModel):
    """
    Immediate response after queueing work.

    Example:
        {
            "task_id": "7b1c...",
            "status": "PENDING",
            "message": "Agent execution queued"
        }
    """

    task_id: str = Field(..., description="Celery task ID for polling")
    status: str = Field(default="PENDING")
    message: str = Field(default="Task queued")


class TaskStatusResponse(BaseModel):
    """Status of a background task (Celery states: PENDING, STARTED, PROGRESS, SUCCESS, FAILURE)."""

    task_id: str
    status: str
    progress: int | None = None
    message: str | None = None
    result: Any = None
    error: str | None = None
