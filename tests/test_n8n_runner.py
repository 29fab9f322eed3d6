# =============================================================================
# tests/test_n8n_runner.py - n8n Workflow Runner Tests
# =============================================================================
# This module contains tests for:
# - Payload building and GET query flattening
# - Webhook calls (method, auth, timeout, error mapping)
# - Output mappings into company_parameters
# =============================================================================

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from agents.models.agent import AgentConfig
from agents.n8n_runner import (
    N8NAgentRunner,
    N8NWebhookError,
    build_payload,
    parameter_value,
    to_query_params,
)
from lib.supabase_client import SupabaseClientError

WEBHOOK_URL = "https://n8n.example.com/webhook/competitors"


@pytest.fixture
def agent(n8n_agent_row):
    return AgentConfig.from_db_row(n8n_agent_row)


@pytest.fixture
def http_client():
    return MagicMock(spec=httpx.Client)


@pytest.fixture
def runner(http_client):
    return N8NAgentRunner(http_client=http_client)


@pytest.fixture
def supabase():
    with patch("agents.n8n_runner.SupabaseClient") as mock:
        yield mock


# =============================================================================
# Helpers
# =============================================================================

class TestPayload:

    def test_payload_adds_ids_and_timestamp(self, agent):
        payload = build_payload(agent, {"competitors": ["a.com"]}, "company-1", "user-1", "en")

        assert payload["competitors"] == ["a.com"]
        assert payload["company_id"] == "company-1"
        assert payload["user_id"] == "user-1"
        assert payload["language"] == "en"
        assert payload["agent_id"] == "agent-n8n-1"
        assert payload["timestamp"].endswith("+00:00")

    def test_payload_ids_override_input(self, agent):
        payload = build_payload(agent, {"company_id": "spoofed"}, "company-1", "user-1")

        assert payload["company_id"] == "company-1"

    def test_query_params_encode_non_strings(self):
        params = to_query_params({"name": "Acme", "count": 3, "tags": ["a", "b"], "flag": None})

        assert params == {"name": "Acme", "count": "3", "tags": '["a", "b"]', "flag": "null"}

    def test_parameter_value_wraps_scalars(self):
        assert parameter_value("texto") == {"value": "texto"}
        assert parameter_value(7) == {"value": 7}
        assert parameter_value({"a": 1}) == {"a": 1}
        assert parameter_value([1, 2]) == [1, 2]


# =============================================================================
# Webhook Calls
# =============================================================================

class TestCallWebhook:
    """Test the HTTP call to n8n."""

    def test_post_sends_json(self, runner, http_client, agent, response_factory, supabase):
        http_client.post.return_value = response_factory(200, {"analysis": {}}, url=WEBHOOK_URL)

        runner.run(agent, {"depth": "full"}, "company-1", "user-1")

        args, kwargs = http_client.post.call_args
        assert args[0] == WEBHOOK_URL
        assert kwargs["json"]["depth"] == "full"
        assert kwargs["auth"] is None
        assert kwargs["timeout"] == 60.0

    def test_get_sends_query_params(self, runner, http_client, n8n_agent_row, response_factory, supabase):
        n8n_agent_row["n8n_config"]["http_method"] = "get"
        n8n_agent_row["n8n_config"]["output_mappings"] = []
        agent = AgentConfig.from_db_row(n8n_agent_row)
        http_client.get.return_value = response_factory(200, {"ok": True}, url=WEBHOOK_URL)

        outcome = runner.run(agent, {"filters": {"country": "CO"}}, "company-1", "user-1")

        params = http_client.get.call_args.kwargs["params"]
        assert json.loads(params["filters"]) == {"country": "CO"}
        assert params["company_id"] == "company-1"
        http_client.post.assert_not_called()
        assert outcome.result == {"ok": True}

    def test_default_timeout(self, runner, http_client, n8n_agent_row, response_factory, supabase):
        n8n_agent_row["n8n_config"]["timeout_ms"] = None
        agent = AgentConfig.from_db_row(n8n_agent_row)
        http_client.post.return_value = response_factory(200, {}, url=WEBHOOK_URL)

        runner.run(agent, {}, "company-1", "user-1")

        assert http_client.post.call_args.kwargs["timeout"] == 300.0

    def test_basic_auth_when_required(self, runner, http_client, n8n_agent_row, response_factory, supabase):
        n8n_agent_row["n8n_config"]["requires_auth"] = True
        agent = AgentConfig.from_db_row(n8n_agent_row)
        http_client.post.return_value = response_factory(200, {}, url=WEBHOOK_URL)

        with patch("agents.n8n_runner.settings") as settings:
            settings.n8n_auth_configured = True
            settings.N8N_AUTH_USER = "buildera"
            settings.N8N_AUTH_PASS = "secret"
            settings.N8N_DEFAULT_TIMEOUT_MS = 300000
            runner.run(agent, {}, "company-1", "user-1")

        assert http_client.post.call_args.kwargs["auth"] == ("buildera", "secret")

    def test_missing_credentials(self, runner, http_client, n8n_agent_row):
        n8n_agent_row["n8n_config"]["requires_auth"] = True
        agent = AgentConfig.from_db_row(n8n_agent_row)

        with patch("agents.n8n_runner.settings") as settings:
            settings.n8n_auth_configured = False
            with pytest.raises(N8NWebhookError) as exc_info:
                runner.run(agent, {}, "company-1", "user-1")

        assert exc_info.value.code == "N8N_AUTH_NOT_CONFIGURED"
        http_client.post.assert_not_called()

    def test_agent_without_webhook(self, runner, n8n_agent_row):
        agent = AgentConfig.from_db_row({**n8n_agent_row, "n8n_config": {}})

        with pytest.raises(N8NWebhookError) as exc_info:
            runner.run(agent, {}, "company-1", "user-1")

        assert exc_info.value.code == "N8N_NOT_CONFIGURED"

    def test_error_status_carries_body(self, runner, http_client, agent, response_factory):
        http_client.post.return_value = response_factory(500, text="Workflow could not be started", url=WEBHOOK_URL)

        with pytest.raises(N8NWebhookError) as exc_info:
            runner.run(agent, {}, "company-1", "user-1")

        assert "500" in exc_info.value.message
        assert "Workflow could not be started" in exc_info.value.message
        assert exc_info.value.details == {"status_code": 500}

    def test_timeout(self, runner, http_client, agent):
        http_client.post.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(N8NWebhookError) as exc_info:
            runner.run(agent, {}, "company-1", "user-1")

        assert exc_info.value.code == "N8N_TIMEOUT"

    def test_non_json_reply(self, runner, http_client, agent, response_factory):
        http_client.post.return_value = response_factory(200, text="Workflow was started", url=WEBHOOK_URL)

        with pytest.raises(N8NWebhookError) as exc_info:
            runner.run(agent, {}, "company-1", "user-1")

        assert exc_info.value.code == "N8N_INVALID_RESPONSE"


# =============================================================================
# Output Mappings
# =============================================================================

class TestOutputMappings:
    """Test copying webhook results into company_parameters."""

    def test_mapped_values_are_saved(self, runner, http_client, agent, response_factory, supabase):
        http_client.post.return_value = response_factory(200, {
            "analysis": {
                "competitors": [{"name": "Rival SAS"}],
                "summary": "Mercado concentrado",
            }
        }, url=WEBHOOK_URL)

        outcome = runner.run(agent, {}, "company-1", "user-1")

        assert outcome.saved_parameters == ["competitors", "market_summary"]
        assert outcome.mapping_errors == []
        assert supabase.replace_company_parameter.call_count == 2

        first = supabase.replace_company_parameter.call_args_list[0].kwargs
        assert first == {
            "company_id": "company-1",
            "category": "market",
            "parameter_key": "competitors",
            "parameter_value": [{"name": "Rival SAS"}],
            "source_agent_code": "COMPETITIVE_INTEL",
        }
        second = supabase.replace_company_parameter.call_args_list[1].kwargs
        assert second["parameter_value"] == {"value": "Mercado concentrado"}

    def test_missing_paths_are_skipped(self, runner, http_client, agent, response_factory, supabase):
        http_client.post.return_value = response_factory(200, {"analysis": {}}, url=WEBHOOK_URL)

        outcome = runner.run(agent, {}, "company-1", "user-1")

        assert outcome.saved_parameters == []
        supabase.replace_company_parameter.assert_not_called()

    def test_save_failure_is_collected(self, runner, http_client, agent, response_factory, supabase):
        http_client.post.return_value = response_factory(200, {
            "analysis": {"competitors": [], "summary": "ok"}
        }, url=WEBHOOK_URL)
        supabase.replace_company_parameter.side_effect = [
            SupabaseClientError("insert denied"),
            None,
        ]

        outcome = runner.run(agent, {}, "company-1", "user-1")

        assert outcome.saved_parameters == ["market_summary"]
        assert outcome.mapping_errors == ["competitors: insert denied"]
