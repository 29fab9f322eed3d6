# =============================================================================
# tests/test_tasks.py - Celery Task Tests
# =============================================================================
# Task bodies are called directly with .run(); no broker is needed.
# =============================================================================

from unittest.mock import patch

import pytest

from agents.executor import AgentExecutionError
from agents.models.execution import AgentExecutionResult
from app.config import settings
from core.models.webhook import CompanyWebhooksResponse
from workers.config import CeleryConfig
from workers.tasks import error_payload, execute_agent, run_company_webhooks


@pytest.fixture(autouse=True)
def no_progress():
    with patch("workers.tasks.update_progress") as mock:
        yield mock


class TestExecuteAgentTask:

    def test_returns_result_dict(self):
        with patch("agents.executor.AgentExecutor") as executor_cls:
            executor_cls.return_value.execute.return_value = AgentExecutionResult(
                success=True, agent_id="agent-1", credits_used=2
            )
            result = execute_agent.run({"agent_id": "agent-1", "user_id": "user-1"})

        assert result["success"] is True
        assert result["credits_used"] == 2
        request = executor_cls.return_value.execute.call_args.args[0]
        assert request.agent_id == "agent-1"

    def test_result_and_progress_record_requesting_user(self, no_progress):
        with patch("agents.executor.AgentExecutor") as executor_cls:
            executor_cls.return_value.execute.return_value = AgentExecutionResult(
                success=True, agent_id="agent-1"
            )
            result = execute_agent.run({"agent_id": "agent-1", "user_id": "user-1"})

        assert result["requested_by"] == "user-1"
        assert all(c.kwargs["requested_by"] == "user-1" for c in no_progress.call_args_list)

    def test_agent_error_is_returned(self):
        with patch("agents.executor.AgentExecutor") as executor_cls:
            executor_cls.return_value.execute.side_effect = AgentExecutionError(
                "Not enough credits", code="INSUFFICIENT_CREDITS"
            )
            result = execute_agent.run({"agent_id": "agent-1", "user_id": "user-1"})

        assert result["success"] is False
        assert result["agent_id"] == "agent-1"
        assert result["error"]["code"] == "INSUFFICIENT_CREDITS"
        assert result["requested_by"] == "user-1"

    def test_invalid_request_is_returned(self):
        result = execute_agent.run({"agent_id": "agent-1"})

        assert result["success"] is False
        assert result["error"]["code"] == "INTERNAL_ERROR"


class TestCompanyWebhooksTask:

    def test_runs_service(self):
        with patch("core.services.company_webhooks.CompanyWebhookService.execute_company_webhooks") as run:
            run.return_value = CompanyWebhooksResponse(success=True, company_updated=True)
            result = run_company_webhooks.run("user-1", {"company_name": "Acme"}, "company-1")

        assert result == {"success": True, "results": [], "company_updated": True, "requested_by": "user-1"}
        user_id, request, company_id = run.call_args.args
        assert request.company_name == "Acme"
        assert company_id == "company-1"


class TestErrorPayload:

    def test_plain_exception(self):
        assert error_payload(RuntimeError("boom")) == {"code": "INTERNAL_ERROR", "message": "boom"}


class TestCeleryConfig:

    def test_agent_tasks_use_ai_queue(self):
        assert CeleryConfig.task_routes["workers.tasks.execute_agent"] == {"queue": "ai_tasks"}
        assert CeleryConfig.task_routes["workers.tasks.run_company_webhooks"] == {"queue": "ai_tasks"}

    def test_time_limit_covers_n8n_timeout(self):
        assert CeleryConfig.task_time_limit > settings.N8N_DEFAULT_TIMEOUT_MS // 1000
        assert CeleryConfig.task_soft_time_limit < CeleryConfig.task_time_limit
        assert CeleryConfig.task_acks_late is False
