# =============================================================================
# agents/n8n_runner.py - n8n Workflow Runner
# =============================================================================
# Runs agents backed by n8n workflows:
# 1. Build the payload (input + company/user/agent ids + timestamp)
# 2. Call the webhook (GET query string or POST JSON, optional Basic auth)
# 3. Copy mapped result values into company_parameters
#
# Usage:
#   from agents.n8n_runner import N8NAgentRunner
#   outcome = N8NAgentRunner().run(agent, input_data, company_id, user_id)
#   print(outcome.saved_parameters)
# =============================================================================

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx

from agents.models.agent import AgentConfig, N8NConfig
from app.config import settings
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ApplicationError, get_nested_value

logger = logging.getLogger(__name__)


class N8NWebhookError(ApplicationError):
    """Error calling an n8n webhook."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "N8N_WEBHOOK_ERROR")
        super().__init__(message, **kwargs)


@dataclass
class N8NRunOutcome:
    """Webhook result plus the parameters written from it."""

    result: Any
    payload: dict[str, Any]
    saved_parameters: list[str] = field(default_factory=list)
    mapping_errors: list[str] = field(default_factory=list)


# =============================================================================
# Helpers
# =============================================================================

def build_payload(
    agent: AgentConfig,
    input_data: dict[str, Any],
    company_id: str,
    user_id: str,
    language: str = "es",
) -> dict[str, Any]:
    return {
        **input_data,
        "company_id": company_id,
        "user_id": user_id,
        "language": language,
        "agent_id": agent.id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def to_query_params(payload: dict[str, Any]) -> dict[str, str]:
    """Flatten a payload for a GET webhook; non-string values are JSON encoded."""
    return {
        key: value if isinstance(value, str) else json.dumps(value, default=str)
        for key, value in payload.items()
    }


def parameter_value(value: Any) -> Any:
    """company_parameters.parameter_value is JSONB; scalars get wrapped."""
    if isinstance(value, (dict, list)):
        return value
    return {"value": value}


# =============================================================================
# Runner
# =============================================================================

class N8NAgentRunner:
    """
    Executes n8n-backed agents.

    Attributes:
        http_client: httpx client (injected in tests)
    """

    def __init__(self, http_client: httpx.Client | None = None):
        self.http_client = http_client or httpx.Client()

    def run(
        self,
        agent: AgentConfig,
        input_data: dict[str, Any],
        company_id: str,
        user_id: str,
        language: str = "es",
    ) -> N8NRunOutcome:
        """
        Call the agent's webhook and apply its output mappings.

        Raises:
            N8NWebhookError: If the agent has no webhook, credentials are
                missing, or the webhook fails
        """
        config = agent.n8n_config
        if config is None:
            raise N8NWebhookError(
                message=f"Agent {agent.id} does not have n8n configuration",
                code="N8N_NOT_CONFIGURED",
                suggestion="Set n8n_config.webhook_url on the agent",
                details={"agent_id": agent.id},
            )

        payload = build_payload(agent, input_data, company_id, user_id, language)
        logger.info(f"Calling n8n webhook for agent {agent.name or agent.id}: {config.webhook_url}")

        result = self.call_webhook(config, payload)
        outcome = N8NRunOutcome(result=result, payload=payload)

        if config.output_mappings:
            self.apply_output_mappings(agent, config, result, company_id, outcome)

        return outcome

    def call_webhook(self, config: N8NConfig, payload: dict[str, Any]) -> Any:
        """
        Send the payload to the webhook and return its JSON reply.

        Raises:
            N8NWebhookError: On missing credentials, timeout, network
                failure, non-2xx status or a non-JSON reply
        """
        auth = None
        if config.requires_auth:
            if not settings.n8n_auth_configured:
                raise N8NWebhookError(
                    message="N8N authentication credentials not configured",
                    code="N8N_AUTH_NOT_CONFIGURED",
                    suggestion="Set N8N_AUTH_USER and N8N_AUTH_PASS",
                )
            auth = (settings.N8N_AUTH_USER, settings.N8N_AUTH_PASS)

        timeout = (config.timeout_ms or settings.N8N_DEFAULT_TIMEOUT_MS) / 1000

        try:
            if config.http_method == "GET":
                response = self.http_client.get(
                    config.webhook_url,
                    params=to_query_params(payload),
                    auth=auth,
                    timeout=timeout,
                )
            else:
                response = self.http_client.post(
                    config.webhook_url,
                    json=payload,
                    auth=auth,
                    timeout=timeout,
                )
        except httpx.TimeoutException:
            raise N8NWebhookError(
                message=f"N8N webhook timed out after {timeout:.0f}s",
                code="N8N_TIMEOUT",
                suggestion="Increase n8n_config.timeout_ms or check the workflow",
            )
        except httpx.HTTPError as e:
            raise N8NWebhookError(message=f"N8N webhook request failed: {e}", code="N8N_NETWORK_ERROR")

        if response.status_code >= 400:
            logger.error(f"n8n webhook error: {response.status_code} - {response.text[:500]}")
            raise N8NWebhookError(
                message=f"N8N webhook failed: {response.status_code} - {response.text[:500]}",
                details={"status_code": response.status_code},
            )

        try:
            return response.json()
        except ValueError:
            raise N8NWebhookError(
                message="N8N webhook returned a non-JSON response",
                code="N8N_INVALID_RESPONSE",
                suggestion="Make the workflow's Respond to Webhook node return JSON",
            )

    def apply_output_mappings(
        self,
        agent: AgentConfig,
        config: N8NConfig,
        result: Any,
        company_id: str,
        outcome: N8NRunOutcome,
    ) -> None:
        """Save each mapped value; failures are recorded per mapping."""
        logger.info(f"Processing {len(config.output_mappings)} output mappings")

        for mapping in config.output_mappings:
            value = get_nested_value(result, mapping.source_path)
            if value is None:
                logger.warning(f"No value found at path: {mapping.source_path}")
                continue

            try:
                SupabaseClient.replace_company_parameter(
                    company_id=company_id,
                    category=mapping.category,
                    parameter_key=mapping.target_key,
                    parameter_value=parameter_value(value),
                    source_agent_code=agent.internal_code,
                )
            except SupabaseClientError as e:
                logger.error(f"Error saving parameter {mapping.target_key}: {e.message}")
                outcome.mapping_errors.append(f"{mapping.target_key}: {e.message}")
                continue

            logger.debug(f"Saved parameter: {mapping.target_key}")
            outcome.saved_parameters.append(mapping.target_key)
