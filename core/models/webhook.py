# =============================================================================
# core/models/webhook.py - Company Webhook Schemas
# =============================================================================
# These models define the contract for the company enrichment webhooks that
# run when a company registers or updates its profile:
# - CompanyWebhooksRequest: which company data to send
# - WebhookResult: outcome of one webhook call
# - CompanyWebhooksResponse: all outcomes plus whether the company row
#   was updated from the n8n reply
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TriggerType(str, Enum):
    """Why the webhooks are being run."""
    REGISTRATION = "registration"
    UPDATE = "update"
    FIRST_SAVE_SOCIAL = "first_save_social"


class CompanyWebhooksRequest(BaseModel):
    """
    Input for running the company enrichment webhooks.

    Example:
        {
            "company_name": "Acme Corp",
            "website_url": "https://acme.example",
            "country": "Colombia",
            "trigger_type": "registration"
        }
    """

    company_name: str = Field(..., min_length=1, max_length=255)
    website_url: str | None = Field(default=None, description="Enables the by-URL extractors")
    country: str | None = None
    trigger_type: TriggerType = TriggerType.UPDATE


class WebhookResult(BaseModel):
    """Outcome of one webhook call."""

    name: str
    success: bool
    data: Any = None
    error: str | None = None


class CompanyWebhooksResponse(BaseModel):
    """All webhook outcomes for one run."""

    success: bool
    results: list[WebhookResult] = Field(default_factory=list)
    company_updated: bool = False
