# =============================================================================
# app/routers/companies.py - Company Enrichment Endpoints
# =============================================================================
# Runs the enrichment webhooks for a company the user belongs to.
# Pass ?background=true to queue the run on the worker instead.
# Also runs the company's AI functions (social analysis batch, content,
# campaigns, strategy). Every route requires company membership.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthUser, ensure_company_member, get_current_user
from app.exceptions import TaskQueueUnavailableError
from core.models.task import TaskSubmitted
from core.models.webhook import CompanyWebhooksRequest, CompanyWebhooksResponse
from core.services.company_webhooks import CompanyWebhookService
from lib.edge_functions import EdgeFunctionResponse
from lib.edge_functions.ai import batch_analyze_social, generate_company_content
from lib.edge_functions.business import generate_campaign, generate_company_strategy
from lib.edge_functions.types import CampaignGenerationRequest, ContentGenerationRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/{company_id}/webhooks",
    response_model=CompanyWebhooksResponse | TaskSubmitted,
)
def run_company_webhooks(
    company_id: Annotated[str, Path(description="Company to enrich")],
    request: CompanyWebhooksRequest,
    background: Annotated[bool, Query(description="Queue on the worker")] = False,
    user: AuthUser = Depends(get_current_user),
):
    """
    Run get-data-by-url, get-brand-by-url and the n8n business webhook.

    The URL extractors only run when website_url is set. When the n8n
    webhook answers with company data the company row is updated.
    """
    user_id = str(user.id)
    ensure_company_member(company_id, user)

    if not background:
        return CompanyWebhookService.execute_company_webhooks(user_id, request, company_id)

    from workers.tasks import run_company_webhooks as run_company_webhooks_task

    try:
        result = run_company_webhooks_task.delay(user_id, request.model_dump(mode="json"), company_id)
    except Exception as e:
        logger.error(f"Error queueing company webhooks for {company_id}: {e}")
        raise TaskQueueUnavailableError(str(e))

    return TaskSubmitted(task_id=result.id, message="Company webhooks queued")


@router.post(
    "/{company_id}/social-analysis",
    response_model=list[EdgeFunctionResponse],
)
def run_social_analysis(
    company_id: Annotated[str, Path(description="Company to analyze")],
    user: AuthUser = Depends(get_current_user),
):
    """
    Run content, audience, activity and retrospective analysis together.

    One response per analysis, in that order; a failed analysis is
    reported in its entry's error field.
    """
    ensure_company_member(company_id, user)
    logger.info(f"User {user.id} running social analysis for company {company_id}")
    return batch_analyze_social(company_id)


@router.post("/{company_id}/content", response_model=EdgeFunctionResponse)
def create_company_content(
    company_id: Annotated[str, Path(description="Company the content is for")],
    request: ContentGenerationRequest,
    user: AuthUser = Depends(get_current_user),
):
    ensure_company_member(company_id, user)
    return generate_company_content(request.model_copy(update={"company_id": company_id}))


@router.post("/{company_id}/campaigns", response_model=EdgeFunctionResponse)
def create_campaign(
    company_id: Annotated[str, Path(description="Company running the campaign")],
    request: CampaignGenerationRequest,
    user: AuthUser = Depends(get_current_user),
):
    """Generate a campaign plan; the user comes from the token."""
    ensure_company_member(company_id, user)
    return generate_campaign(
        request.model_copy(update={"company_id": company_id, "user_id": str(user.id)})
    )


@router.post("/{company_id}/strategy", response_model=EdgeFunctionResponse)
def create_company_strategy(
    company_id: Annotated[str, Path(description="Company to plan for")],
    user: AuthUser = Depends(get_current_user),
):
    ensure_company_member(company_id, user)
    return generate_company_strategy(company_id)
