# =============================================================================
# core/services/company_webhooks.py - Company Enrichment Webhooks
# =============================================================================
# When a company registers or updates its profile, three edge functions
# enrich it:
# - get-data-by-url / get-brand-by-url (only when a website is known)
# - call-n8n-mybusiness-webhook (always)
#
# They run as one batch. The n8n reply carries key/value pairs that are
# copied onto the companies row.
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from core.models.webhook import (
    CompanyWebhooksRequest,
    CompanyWebhooksResponse,
    TriggerType,
    WebhookResult,
)
from lib.edge_functions import BatchRequest, batch_invoke_edge_functions
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

N8N_BUSINESS_WEBHOOK = "call-n8n-mybusiness-webhook"

# n8n response key -> companies column
FIELD_MAP = {
    "descripcion_empresa": "description",
    "industria_principal": "industry_sector",
}

SOCIAL_FIELD_MAP = {
    "facebook": "facebook_url",
    "twitter": "twitter_url",
    "linkedin": "linkedin_url",
    "instagram": "instagram_url",
    "youtube": "youtube_url",
    "tiktok": "tiktok_url",
}

# n8n answers this when a network wasn't found
NO_PROFILE = "No tiene"

TRIGGER_LABELS = {
    TriggerType.REGISTRATION: "Nuevo registro",
    TriggerType.FIRST_SAVE_SOCIAL: "Primer guardado social",
    TriggerType.UPDATE: "Actualización",
}


def build_company_info(request: CompanyWebhooksRequest) -> str:
    info = f"Empresa: {request.company_name}"
    if request.website_url:
        info += f", sitio web: {request.website_url}"
    if request.country:
        info += f", país: {request.country}"
    return info


def map_webhook_fields(webhook_data: list[Any]) -> dict[str, Any]:
    """
    Translate the first n8n reply's key/value pairs into company columns.

    Replies that are not {"response": [{key, value}, ...]} map to nothing.
    Unknown keys are ignored; social networks reported as "No tiene" are
    stored as None.
    """
    first = webhook_data[0] if webhook_data else None
    items = first.get("response") if isinstance(first, dict) else None
    if not isinstance(items, list):
        return {}

    update: dict[str, Any] = {}

    for item in items:
        if not isinstance(item, dict):
            continue
        key = item.get("key")
        value = item.get("value")

        if key in FIELD_MAP:
            update[FIELD_MAP[key]] = value
        elif key in SOCIAL_FIELD_MAP:
            update[SOCIAL_FIELD_MAP[key]] = value if value != NO_PROFILE else None

    return update


class CompanyWebhookService:
    """Runs the enrichment webhooks and applies their results."""

    @staticmethod
    def process_webhook_response(
        user_id: str,
        webhook_data: list[Any],
        company_id: str | None = None,
    ) -> bool:
        """
        Copy an n8n reply onto the company row.

        Without a company_id the user's primary company is used.

        Returns:
            True if the company was updated
        """
        try:
            target_company_id = company_id or SupabaseClient.fetch_primary_company_id(user_id)
            if not target_company_id:
                logger.error(f"No primary company found for user {user_id}")
                return False

            update = {
                "webhook_data": webhook_data,
                "webhook_processed_at": datetime.now(timezone.utc).isoformat(),
                **map_webhook_fields(webhook_data),
            }
            SupabaseClient.update_company(target_company_id, update)

        except SupabaseClientError as e:
            logger.error(f"Error applying webhook data to company: {e}")
            return False

        logger.info(f"Company {target_company_id} updated with webhook data ({len(update) - 2} fields)")
        return True

    @staticmethod
    def execute_company_webhooks(
        user_id: str,
        request: CompanyWebhooksRequest,
        company_id: str | None = None,
    ) -> CompanyWebhooksResponse:
        """
        Run the enrichment webhooks for a company.

        Each webhook's failure is reported in its own result; it never
        aborts the others.
        """
        logger.info(
            f"Running company webhooks for user {user_id} "
            f"(trigger={request.trigger_type.value}, website={'yes' if request.website_url else 'no'})"
        )

        batch: list[BatchRequest] = []
        if request.website_url and request.website_url.strip():
            url_body = {"url": request.website_url, "user_id": user_id}
            batch.append(BatchRequest(function_name="get-data-by-url", body=url_body))
            batch.append(BatchRequest(function_name="get-brand-by-url", body=url_body))

        batch.append(BatchRequest(
            function_name=N8N_BUSINESS_WEBHOOK,
            body={
                "KEY": "INFO",
                "COMPANY_INFO": build_company_info(request),
                "ADDITIONAL_INFO": TRIGGER_LABELS[request.trigger_type],
            },
        ))

        responses = batch_invoke_edge_functions(batch)

        results = [
            WebhookResult(
                name=call.function_name,
                success=response.ok,
                data=response.data,
                error=response.error.message if response.error else None,
            )
            for call, response in zip(batch, responses)
        ]

        company_updated = False
        n8n_result = results[-1]
        if n8n_result.success and isinstance(n8n_result.data, dict) and n8n_result.data.get("data"):
            payload = n8n_result.data["data"]
            webhook_data = payload if isinstance(payload, list) else [payload]
            company_updated = CompanyWebhookService.process_webhook_response(
                user_id, webhook_data, company_id
            )

        return CompanyWebhooksResponse(
            success=True,
            results=results,
            company_updated=company_updated,
        )
