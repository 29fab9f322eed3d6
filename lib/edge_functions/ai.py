# =============================================================================
# lib/edge_functions/ai.py - AI Edge Functions
# =============================================================================
# Content generation and social analysis for a company. Each helper binds
# a function name to its retry/timeout profile.
# =============================================================================

from __future__ import annotations

from lib.edge_functions.core import batch_invoke_edge_functions, invoke_edge_function
from lib.edge_functions.types import (
    BatchRequest,
    ContentGenerationRequest,
    EdgeFunctionResponse,
    InvokeOptions,
)

SOCIAL_ANALYSIS_FUNCTIONS = (
    "analyze-social-content",
    "analyze-social-audience",
    "analyze-social-activity",
    "analyze-social-retrospective",
)


def generate_company_content(request: ContentGenerationRequest) -> EdgeFunctionResponse:
    return invoke_edge_function(
        "generate-company-content",
        request.model_dump(exclude_none=True),
        InvokeOptions(retries=3, timeout=45),
    )


def batch_analyze_social(company_id: str) -> list[EdgeFunctionResponse]:
    """
    Run content, audience, activity and retrospective analysis concurrently.

    Returns:
        Responses in SOCIAL_ANALYSIS_FUNCTIONS order
    """
    return batch_invoke_edge_functions([
        BatchRequest(function_name=name, body={"company_id": company_id})
        for name in SOCIAL_ANALYSIS_FUNCTIONS
    ])
