# =============================================================================
# lib/edge_functions/business.py - Business Edge Functions
# =============================================================================
# Campaigns, company strategy, subscriptions and the model list.
# =============================================================================

from __future__ import annotations

from lib.edge_functions.core import invoke_edge_function
from lib.edge_functions.types import (
    CampaignGenerationRequest,
    EdgeFunctionResponse,
    InvokeOptions,
    SubscriptionStatus,
)


# =============================================================================
# Campaigns & Company Intelligence
# =============================================================================

def generate_campaign(request: CampaignGenerationRequest) -> EdgeFunctionResponse:
    return invoke_edge_function(
        "campaign-ai-generator",
        request.model_dump(exclude_none=True),
        InvokeOptions(retries=2, timeout=90),
    )


def generate_company_strategy(company_id: str) -> EdgeFunctionResponse:
    return invoke_edge_function(
        "company-strategy", {"company_id": company_id}, InvokeOptions(timeout=60)
    )


# =============================================================================
# Subscriptions
# =============================================================================

def check_subscription_status(
    user_token: str | None = None,
    user_id: str | None = None,
) -> EdgeFunctionResponse:
    """
    Check the caller's subscription, cached for one minute per user.

    When `user_token` is given the call runs as that user; the parsed
    SubscriptionStatus replaces the raw payload on success. A token
    without a user_id is never cached.
    """
    headers = {"Authorization": f"Bearer {user_token}"} if user_token else {}
    response = invoke_edge_function(
        "check-subscription-status",
        {},
        InvokeOptions(
            cache=bool(user_id) or not user_token,
            cache_ttl=60,
            cache_scope=user_id,
            headers=headers,
        ),
    )
    if response.ok and isinstance(response.data, dict):
        response.data = SubscriptionStatus(**response.data)
    return response


# =============================================================================
# Admin
# =============================================================================

def fetch_available_models(provider: str | None = None) -> EdgeFunctionResponse:
    # Model lists change rarely; one hour cache
    return invoke_edge_function(
        "fetch-available-models",
        {"provider": provider},
        InvokeOptions(cache=True, cache_ttl=3600),
    )
