# =============================================================================
# agents/ - AI Agent Execution
# =============================================================================
# This package runs the platform's "AI workforce" agents:
# - executor.py: Loads an agent, checks access/credits, routes and logs usage
# - openai_runner.py: Dynamic/hybrid agents via OpenAI chat completions
# - n8n_runner.py: Workflow agents via n8n webhooks + output mappings
# - payload_mapper.py: Builds each agent's input from company data
#
# Models:
# - models/agent.py: AgentConfig schema
# - models/execution.py: AgentExecutionRequest / AgentExecutionResult
# =============================================================================

from agents.executor import AgentExecutionError, AgentExecutor, execute_agent
from agents.models import (
    AgentConfig,
    AgentExecutionRequest,
    AgentExecutionResult,
    AgentPayloadContext,
    AgentType,
)
from agents.n8n_runner import N8NAgentRunner, N8NWebhookError
from agents.openai_runner import OpenAIAgentError, OpenAIAgentRunner

__all__ = [
    # Executor
    "AgentExecutor",
    "AgentExecutionError",
    "execute_agent",
    # Runners
    "N8NAgentRunner",
    "N8NWebhookError",
    "OpenAIAgentRunner",
    "OpenAIAgentError",
    # Models
    "AgentConfig",
    "AgentExecutionRequest",
    "AgentExecutionResult",
    "AgentPayloadContext",
    "AgentType",
]
