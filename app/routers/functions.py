# =============================================================================
# app/routers/functions.py - Edge Function Proxy Endpoints
# =============================================================================
# Exposes the edge function wrapper over HTTP so clients get retries,
# caching and batching without reimplementing them.
#
# Failures are returned in the response body (error field), never raised,
# so a batch always answers with one entry per request. Cached responses
# are kept per user.
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user
from lib.edge_functions import (
    FUNCTION_NAME_PATTERN,
    BatchRequest,
    EdgeFunctionResponse,
    InvokeOptions,
    batch_invoke_edge_functions,
    clear_edge_function_cache,
    invoke_edge_function,
)
from lib.edge_functions.business import fetch_available_models

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================

class InvokeRequest(BaseModel):
    """Body and options for one edge function call."""

    body: dict[str, Any] = Field(default_factory=dict)
    options: InvokeOptions = Field(default_factory=InvokeOptions)


class BatchInvokeRequest(BaseModel):
    requests: list[BatchRequest] = Field(..., min_length=1, max_length=50)


class ClearCacheResponse(BaseModel):
    cleared: int
    function_name: str | None = None


def scoped_to(user: AuthUser, options: InvokeOptions | None) -> InvokeOptions:
    return (options or InvokeOptions()).model_copy(update={"cache_scope": str(user.id)})


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/models", response_model=EdgeFunctionResponse)
def list_available_models(
    provider: Annotated[str | None, Query(description="e.g. openai")] = None,
    user: AuthUser = Depends(get_current_user),
):
    """AI models the platform can use, cached for an hour."""
    return fetch_available_models(provider)


@router.post("/batch", response_model=list[EdgeFunctionResponse])
def batch_invoke(
    request: BatchInvokeRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Invoke several edge functions concurrently.

    Responses come back in request order.
    """
    logger.info(f"User {user.id} batch-invoking {len(request.requests)} edge functions")
    return batch_invoke_edge_functions([
        call.model_copy(update={"options": scoped_to(user, call.options)})
        for call in request.requests
    ])


@router.post("/{name}/invoke", response_model=EdgeFunctionResponse)
def invoke(
    name: Annotated[str, Path(pattern=FUNCTION_NAME_PATTERN, description="Edge function name")],
    request: InvokeRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Invoke one edge function with retries and optional caching.

    Example:
        POST /api/v1/functions/generate-company-content/invoke
        {"body": {"prompt": "..."}, "options": {"retries": 2, "cache": true}}
    """
    return invoke_edge_function(name, request.body, scoped_to(user, request.options))


@router.delete("/cache", response_model=ClearCacheResponse)
def clear_cache(
    function_name: Annotated[str | None, Query(description="Only clear this function's entries")] = None,
    user: AuthUser = Depends(get_current_user),
):
    cleared = clear_edge_function_cache(function_name)
    logger.info(f"Cleared {cleared} cached edge function responses (function={function_name or 'all'})")
    return ClearCacheResponse(cleared=cleared, function_name=function_name)
