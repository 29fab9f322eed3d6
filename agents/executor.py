# =============================================================================
# agents/executor.py - Agent Executor
# =============================================================================
# Runs a platform agent on behalf of a user and company.
#
# Flow:
# 1. Load the agent and check it is active
# 2. For company runs: check the agent is enabled and credits suffice
# 3. Open a pending agent_usage_log row
# 4. Route by agent_type (static -> edge function, dynamic/hybrid -> OpenAI,
#    n8n -> webhook)
# 5. Close the log row as completed/failed; deduct credits on success
#
# Usage:
#   from agents.executor import AgentExecutor
#   result = AgentExecutor().execute(AgentExecutionRequest(
#       agent_id="...", user_id="...", company_id="...",
#       input_data={"topic": "spring launch"},
#   ))
# =============================================================================

from __future__ import annotations

import logging
import time
from typing import Any

from agents.models.agent import AgentConfig, AgentType
from agents.models.execution import (
    AgentExecutionRequest,
    AgentExecutionResult,
    UsageStatus,
)
from agents.n8n_runner import N8NAgentRunner
from agents.openai_runner import OpenAIAgentRunner
from agents.payload_mapper import build_agent_payload, get_agent_edge_function
from lib.edge_functions import EdgeFunctionClient, InvokeOptions, get_edge_function_client
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ApplicationError, elapsed_ms

logger = logging.getLogger(__name__)

# Static agents wrap long-running edge functions
STATIC_AGENT_TIMEOUT = 120.0


class AgentExecutionError(ApplicationError):
    """
    Error executing an agent.

    The code tells the API layer which HTTP status to use
    (see app.exceptions.ERROR_STATUS_CODES).
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "AGENT_EXECUTION_ERROR")
        super().__init__(message, **kwargs)


class AgentExecutor:
    """
    Routes agent runs to the right backend and records usage.

    Runners are created on first use so a static-only deployment never
    needs OpenAI credentials.
    """

    def __init__(
        self,
        openai_runner: OpenAIAgentRunner | None = None,
        n8n_runner: N8NAgentRunner | None = None,
        edge_client: EdgeFunctionClient | None = None,
    ):
        self._openai_runner = openai_runner
        self._n8n_runner = n8n_runner
        self._edge_client = edge_client

    @property
    def openai_runner(self) -> OpenAIAgentRunner:
        if self._openai_runner is None:
            self._openai_runner = OpenAIAgentRunner()
        return self._openai_runner

    @property
    def n8n_runner(self) -> N8NAgentRunner:
        if self._n8n_runner is None:
            self._n8n_runner = N8NAgentRunner()
        return self._n8n_runner

    @property
    def edge_client(self) -> EdgeFunctionClient:
        if self._edge_client is None:
            self._edge_client = get_edge_function_client()
        return self._edge_client

    # -------------------------------------------------------------------------
    # Main Entry Point
    # -------------------------------------------------------------------------

    def execute(self, request: AgentExecutionRequest) -> AgentExecutionResult:
        """
        Execute an agent.

        Raises:
            AgentExecutionError: If the agent can't run or its backend fails
            SupabaseClientError: If loading the agent or company data fails
        """
        start = time.monotonic()
        logger.info(
            f"Executing agent {request.agent_id} for user {request.user_id}"
            f" (company {request.company_id})"
        )

        agent = self._load_agent(request.agent_id)
        if request.company_id:
            self._check_company_access(agent, request.company_id)

        input_data = self._resolve_input(agent, request)
        usage_log_id = self._start_usage_log(agent, request, input_data)

        try:
            result, summary, extras = self._dispatch(agent, request, input_data)
        except Exception as e:
            message = e.message if isinstance(e, ApplicationError) else str(e)
            logger.error(f"Agent {agent.id} failed: {message}")
            self._finish_usage_log(usage_log_id, {
                "status": UsageStatus.FAILED.value,
                "error_message": message,
                "execution_time_ms": elapsed_ms(start),
            })
            raise

        execution_time = elapsed_ms(start)
        self._finish_usage_log(usage_log_id, {
            "status": UsageStatus.COMPLETED.value,
            "output_data": result,
            "output_summary": summary,
            "execution_time_ms": execution_time,
        })

        credits_used = 0
        if request.company_id and agent.credits_per_use:
            credits_used = self._deduct_credits(request.company_id, agent.credits_per_use)

        logger.info(f"Agent {agent.name or agent.id} completed in {execution_time}ms")

        return AgentExecutionResult(
            success=True,
            agent_id=agent.id,
            agent_name=agent.name,
            agent_type=agent.agent_type,
            result=result,
            output_summary=summary,
            credits_used=credits_used,
            execution_time_ms=execution_time,
            usage_log_id=usage_log_id,
            **extras,
        )

    # -------------------------------------------------------------------------
    # Pre-flight Checks
    # -------------------------------------------------------------------------

    def _load_agent(self, agent_id: str) -> AgentConfig:
        row = SupabaseClient.fetch_agent(agent_id)
        if not row:
            raise AgentExecutionError(
                message=f"Agent not found: {agent_id}",
                code="AGENT_NOT_FOUND",
                suggestion="Check the agent_id against platform_agents",
                details={"agent_id": agent_id},
            )

        agent = AgentConfig.from_db_row(row)
        if not agent.is_active:
            raise AgentExecutionError(
                message=f"Agent is not active: {agent.name or agent_id}",
                code="AGENT_INACTIVE",
                suggestion="Activate the agent in the admin agents library",
                details={"agent_id": agent_id},
            )
        return agent

    def _check_company_access(self, agent: AgentConfig, company_id: str) -> None:
        if not SupabaseClient.is_agent_enabled(company_id, agent.id):
            raise AgentExecutionError(
                message="Agent not enabled for this company",
                code="AGENT_NOT_ENABLED",
                suggestion="Enable the agent for the company before running it",
                details={"agent_id": agent.id, "company_id": company_id},
            )

        available = SupabaseClient.fetch_available_credits(company_id)
        if available is None or available < agent.credits_per_use:
            raise AgentExecutionError(
                message="Insufficient credits",
                code="INSUFFICIENT_CREDITS",
                suggestion="Top up company credits or choose a cheaper agent",
                details={
                    "company_id": company_id,
                    "available_credits": available or 0,
                    "required_credits": agent.credits_per_use,
                },
            )

    @staticmethod
    def _resolve_input(agent: AgentConfig, request: AgentExecutionRequest) -> dict[str, Any]:
        """Mapped payload from company context, overridden by explicit input."""
        if request.payload_context is None:
            return dict(request.input_data)

        context = request.payload_context
        if context.user_id is None:
            context = context.model_copy(update={"user_id": request.user_id})
        return {**build_agent_payload(agent.internal_code, context), **request.input_data}

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    def _dispatch(
        self,
        agent: AgentConfig,
        request: AgentExecutionRequest,
        input_data: dict[str, Any],
    ) -> tuple[Any, str, dict[str, Any]]:
        """Run the agent; returns (result, summary, extra result fields)."""
        agent_type = agent.agent_type

        if agent_type == AgentType.STATIC.value:
            return self._run_static(agent, request, input_data), "Edge function executed successfully", {}

        if agent_type in (AgentType.DYNAMIC.value, AgentType.HYBRID.value):
            result = self.openai_runner.run(agent, input_data, request.context)
            return result, result.get("summary") or "Dynamic agent executed", {}

        if agent_type == AgentType.N8N.value:
            if not request.company_id:
                raise AgentExecutionError(
                    message="n8n agents require a company_id",
                    code="COMPANY_REQUIRED",
                    suggestion="Pass the company the workflow should write parameters for",
                )
            outcome = self.n8n_runner.run(
                agent, input_data, request.company_id, request.user_id, request.language
            )
            summary = f"Executed {agent.name}. Saved {len(outcome.saved_parameters)} parameters."
            extras = {
                "saved_parameters": outcome.saved_parameters,
                "mapping_errors": outcome.mapping_errors,
            }
            return outcome.result, summary, extras

        raise AgentExecutionError(
            message=f"Unknown agent type: {agent_type}",
            code="UNKNOWN_AGENT_TYPE",
            suggestion="Use one of: static, dynamic, hybrid, n8n",
            details={"agent_id": agent.id},
        )

    def _run_static(
        self,
        agent: AgentConfig,
        request: AgentExecutionRequest,
        input_data: dict[str, Any],
    ) -> Any:
        function_name = agent.edge_function_name or get_agent_edge_function(agent.internal_code or "")
        if not function_name:
            raise AgentExecutionError(
                message=f"Static agent has no edge function: {agent.name or agent.id}",
                code="EDGE_FUNCTION_NOT_CONFIGURED",
                suggestion="Set edge_function_name on the agent",
                details={"agent_id": agent.id},
            )

        body = {
            **input_data,
            "user_id": request.user_id,
            "company_id": request.company_id,
            "context": request.context,
        }
        response = self.edge_client.invoke(
            function_name, body, InvokeOptions(timeout=STATIC_AGENT_TIMEOUT)
        )
        if not response.ok:
            raise AgentExecutionError(
                message=f"Edge function {function_name} failed: {response.error.message}",
                code="EDGE_FUNCTION_FAILED",
                details=response.error.model_dump(),
            )
        return response.data

    # -------------------------------------------------------------------------
    # Usage Log & Credits
    # -------------------------------------------------------------------------

    @staticmethod
    def _start_usage_log(
        agent: AgentConfig,
        request: AgentExecutionRequest,
        input_data: dict[str, Any],
    ) -> str | None:
        """Open a pending log row; a logging failure doesn't block the run."""
        try:
            row = SupabaseClient.insert_usage_log({
                "agent_id": agent.id,
                "user_id": request.user_id,
                "company_id": request.company_id,
                "input_data": input_data,
                "status": UsageStatus.PENDING.value,
                "credits_consumed": agent.credits_per_use,
            })
            return row.get("id")
        except SupabaseClientError as e:
            logger.error(f"Error creating usage log: {e}")
            return None

    @staticmethod
    def _finish_usage_log(usage_log_id: str | None, data: dict[str, Any]) -> None:
        if not usage_log_id:
            return
        try:
            SupabaseClient.update_usage_log(usage_log_id, data)
        except SupabaseClientError as e:
            logger.error(f"Error updating usage log {usage_log_id}: {e}")

    @staticmethod
    def _deduct_credits(company_id: str, amount: int) -> int:
        """Returns the credits actually deducted (0 if the RPC failed)."""
        try:
            SupabaseClient.deduct_credits(company_id, amount)
            return amount
        except SupabaseClientError as e:
            logger.error(f"Credit deduction failed after a successful run: {e}")
            return 0


def execute_agent(request: AgentExecutionRequest) -> AgentExecutionResult:
    """Execute an agent with default runners."""
    return AgentExecutor().execute(request)
