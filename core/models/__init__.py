# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - webhook.py: Company enrichment webhook request/response
# - email.py: Inbound email rows and webhook results
# - task.py: Background task status schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Webhook Models - Company enrichment
# -----------------------------------------------------------------------------
from .webhook import (
    CompanyWebhooksRequest,
    CompanyWebhooksResponse,
    TriggerType,
    WebhookResult,
)

# -----------------------------------------------------------------------------
# Email Models - SendGrid Inbound Parse
# -----------------------------------------------------------------------------
from .email import (
    InboundAttachment,
    InboundEmail,
    InboundEmailResult,
    MailboxType,
    ProcessingStatus,
)

# -----------------------------------------------------------------------------
# Task Models - Celery status polling
# -----------------------------------------------------------------------------
from .task import TaskStatusResponse, TaskSubmitted

__all__ = [
    # Webhook
    "CompanyWebhooksRequest",
    "CompanyWebhooksResponse",
    "TriggerType",
    "WebhookResult",
    # Email
    "InboundAttachment",
    "InboundEmail",
    "InboundEmailResult",
    "MailboxType",
    "ProcessingStatus",
    # Task
    "TaskStatusResponse",
    "TaskSubmitted",
]
