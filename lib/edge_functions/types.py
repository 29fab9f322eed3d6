# =============================================================================
# lib/edge_functions/types.py - Edge Function Invocation Schemas
# =============================================================================
# Pydantic models shared by the invocation wrapper and the function catalog:
# - InvokeOptions: retry / timeout / cache profile for one call
# - EdgeFunctionError / EdgeFunctionResponse: the uniform {data, error} shape
# - BatchRequest: one entry of a batch invocation
# - Request bodies for the most used catalog functions
# =============================================================================

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from app.config import settings

# Deployed function names: lowercase slugs, no path separators
FUNCTION_NAME_PATTERN = r"^[a-z0-9][a-z0-9-]*$"


# =============================================================================
# Invocation Options
# =============================================================================

class InvokeOptions(BaseModel):
    """
    Per-call invocation profile.

    `retries` counts additional attempts after the first one, so a call
    makes at most 1 + retries requests.
    """

    retries: int = Field(
        default_factory=lambda: settings.EDGE_FUNCTION_RETRIES,
        ge=0,
        le=10,
        description="Additional attempts after a failed call"
    )

    timeout: float = Field(
        default_factory=lambda: settings.EDGE_FUNCTION_TIMEOUT,
        gt=0,
        description="Per-attempt timeout in seconds"
    )

    cache: bool = Field(
        default=False,
        description="Cache successful responses in memory"
    )

    cache_ttl: float = Field(
        default_factory=lambda: settings.EDGE_FUNCTION_CACHE_TTL,
        gt=0,
        description="Seconds a cached response stays fresh"
    )

    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra request headers (e.g. a user's Authorization)"
    )

    cache_scope: str | None = Field(
        default=None,
        description="Keeps cached responses apart per caller (e.g. a user id)"
    )


# =============================================================================
# Uniform Response Shape
# =============================================================================

class EdgeFunctionError(BaseModel):
    """Failure details returned instead of raising."""

    message: str
    function_name: str
    code: str = "EDGE_FUNCTION_ERROR"
    status_code: int | None = None
    attempts: int = 0
    details: Any = None


class EdgeFunctionResponse(BaseModel):
    """
    Result of an edge function call.

    Exactly one of `data` / `error` is meaningful: `error` is None on
    success. `cached` marks responses served from memory.
    """

    data: Any = None
    error: EdgeFunctionError | None = None
    cached: bool = False
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchRequest(BaseModel):
    """One call of a batch invocation."""

    function_name: str = Field(..., pattern=FUNCTION_NAME_PATTERN)
    body: dict[str, Any] = Field(default_factory=dict)
    options: InvokeOptions | None = None


# =============================================================================
# Catalog Request Bodies
# =============================================================================
# company_id is optional in the body; the company routes set it from the URL.

class ContentGenerationRequest(BaseModel):
    """Body for generate-company-content."""

    company_id: str | None = None
    prompt: str = Field(..., min_length=1)
    platform: str = "general"
    content_type: str = "post"
    language: str = "es"
    context: dict[str, Any] | None = None


class CampaignGenerationRequest(BaseModel):
    """Body for campaign-ai-generator."""

    company_id: str | None = None
    user_id: str | None = None
    campaign_type: str = "awareness"
    objective: str = ""
    platforms: list[str] = Field(default_factory=lambda: ["instagram", "facebook"])
    budget: float | None = None
    duration: str = "30 days"
    language: str = "es"


class SubscriptionStatus(BaseModel):
    """Response of check-subscription-status."""

    subscribed: bool = False
    plan: str | None = None
    status: str | None = None
    current_period_end: str | None = None
