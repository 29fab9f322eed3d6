# =============================================================================
# agents/models/execution.py - Agent Execution Schemas
# =============================================================================
# Request and result models for running an agent:
# - AgentPayloadContext: company data used to build an agent's input
# - AgentExecutionRequest: what the caller asks to run
# - AgentExecutionResult: what the executor returns (and stores in the
#   agent_usage_log row)
# =============================================================================

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class UsageStatus(str, Enum):
    """agent_usage_log.status values."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class AgentPayloadContext(BaseModel):
    """
    Company data an agent's payload is built from.

    `company` must carry at least `id` and `name`; the other sections are
    loaded only for agents that need them (see get_agent_data_requirements).
    """

    company: dict[str, Any]
    strategy: dict[str, Any] | None = None
    audiences: list[dict[str, Any]] = Field(default_factory=list)
    branding: dict[str, Any] | None = None
    configuration: dict[str, Any] = Field(default_factory=dict)
    user_id: str | None = None
    language: str = "es"


class AgentExecutionRequest(BaseModel):
    """Run one agent for a user (and optionally a company)."""

    agent_id: str = Field(..., min_length=1, description="platform_agents.id")
    user_id: str = Field(..., min_length=1, description="User running the agent")
    company_id: str | None = Field(
        default=None,
        description="Company to bill; enables enablement and credit checks"
    )
    input_data: dict[str, Any] = Field(default_factory=dict)
    context: str | None = Field(default=None, description="Free-text context for dynamic agents")
    language: str = Field(default="es")
    payload_context: AgentPayloadContext | None = Field(
        default=None,
        description="Company data to build the agent payload from; explicit input_data wins"
    )


class AgentExecutionResult(BaseModel):
    """Outcome of an agent run."""

    success: bool
    agent_id: str
    agent_name: str = ""
    agent_type: str = ""
    result: Any = None
    output_summary: str = ""
    credits_used: int = 0
    execution_time_ms: int = 0
    usage_log_id: str | None = None
    saved_parameters: list[str] = Field(default_factory=list)
    mapping_errors: list[str] = Field(default_factory=list)
    error: str | None = None
