# =============================================================================
# agents/models/agent.py - Agent Configuration Schema
# =============================================================================
# Typed view of a platform_agents row. The executor routes on `agent_type`:
#
#   static   -> edge function named by edge_function_name
#   dynamic  -> OpenAI chat completion with the agent's instructions
#   hybrid   -> same as dynamic (tools may call back into edge functions)
#   n8n      -> n8n webhook described by n8n_config
#
# Example:
#   agent = AgentConfig.from_db_row(SupabaseClient.fetch_agent(agent_id))
#   if agent.agent_type == AgentType.N8N:
#       print(agent.n8n_config.webhook_url)
# =============================================================================

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgentType(str, Enum):
    """How an agent is executed."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    HYBRID = "hybrid"
    N8N = "n8n"


# =============================================================================
# n8n Configuration
# =============================================================================

class OutputMapping(BaseModel):
    """Copies one value of an n8n result into company_parameters."""

    source_path: str = Field(..., min_length=1, description="Dotted path into the webhook result")
    target_key: str = Field(..., min_length=1, description="company_parameters.parameter_key")
    category: str = Field(default="general", description="company_parameters.category")


class N8NConfig(BaseModel):
    """Webhook description stored in platform_agents.n8n_config."""

    webhook_url: str = Field(..., min_length=1)
    http_method: Literal["GET", "POST"] = "POST"
    requires_auth: bool = False
    input_schema: dict[str, Any] | None = None
    output_mappings: list[OutputMapping] = Field(default_factory=list)
    timeout_ms: int | None = Field(default=None, gt=0)

    @field_validator("http_method", mode="before")
    @classmethod
    def upper_method(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("output_mappings", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or []


# =============================================================================
# OpenAI Configuration
# =============================================================================

class OpenAIAgentConfig(BaseModel):
    """Built-in tool switches stored in platform_agents.openai_agent_config."""

    model_config = ConfigDict(extra="ignore")

    use_web_search: bool = False
    use_file_search: bool = False
    use_code_interpreter: bool = False


# =============================================================================
# Agent
# =============================================================================

class AgentConfig(BaseModel):
    """A platform agent as loaded from platform_agents."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    internal_code: str | None = None
    agent_type: str = AgentType.DYNAMIC.value
    is_active: bool = True
    credits_per_use: int = Field(default=1, ge=0)

    # static
    edge_function_name: str | None = None

    # dynamic / hybrid
    model_name: str | None = None
    instructions: str = ""
    openai_agent_config: OpenAIAgentConfig = Field(default_factory=OpenAIAgentConfig)
    tools_config: list[dict[str, Any]] = Field(default_factory=list)

    # n8n
    n8n_config: N8NConfig | None = None

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("credits_per_use", mode="before")
    @classmethod
    def default_credits(cls, v: Any) -> Any:
        return 1 if v is None else v

    @field_validator("instructions", "name", mode="before")
    @classmethod
    def none_to_blank(cls, v: Any) -> Any:
        return v or ""

    @field_validator("openai_agent_config", mode="before")
    @classmethod
    def default_openai_config(cls, v: Any) -> Any:
        return v or {}

    @field_validator("tools_config", mode="before")
    @classmethod
    def tools_as_list(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @field_validator("n8n_config", mode="before")
    @classmethod
    def empty_n8n_config(cls, v: Any) -> Any:
        # Rows without a webhook carry {} or null
        if not v:
            return None
        if isinstance(v, dict) and not v.get("webhook_url"):
            return None
        return v

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> AgentConfig:
        return cls.model_validate(row)
