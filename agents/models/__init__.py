# =============================================================================
# agents/models/ - Agent Schemas
# =============================================================================
# This package contains Pydantic models for agent execution:
# - agent.py: AgentConfig (a platform_agents row) and its n8n/OpenAI config
# - execution.py: Execution request/result and payload context
# =============================================================================

from agents.models.agent import (
    AgentConfig,
    AgentType,
    N8NConfig,
    OpenAIAgentConfig,
    OutputMapping,
)
from agents.models.execution import (
    AgentExecutionRequest,
    AgentExecutionResult,
    AgentPayloadContext,
    UsageStatus,
)

__all__ = [
    "AgentConfig",
    "AgentType",
    "N8NConfig",
    "OpenAIAgentConfig",
    "OutputMapping",
    "AgentExecutionRequest",
    "AgentExecutionResult",
    "AgentPayloadContext",
    "UsageStatus",
]
