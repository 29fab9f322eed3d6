# =============================================================================
# agents/openai_runner.py - Dynamic Agent Runner (OpenAI)
# =============================================================================
# Runs dynamic and hybrid agents as a single chat completion:
# 1. Build the tools list from the agent's switches and custom tools
# 2. Send instructions as the system message, input as the user message
# 3. Parse the reply as JSON when possible
#
# Usage:
#   from agents.openai_runner import OpenAIAgentRunner
#   runner = OpenAIAgentRunner()
#   result = runner.run(agent, {"topic": "launch"}, context="B2B SaaS")
# =============================================================================

from __future__ import annotations

import json
import logging
from typing import Any

from openai import OpenAI

from agents.models.agent import AgentConfig
from app.config import settings
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

SUMMARY_LENGTH = 200


class OpenAIAgentError(ApplicationError):
    """Error calling OpenAI for a dynamic agent."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "OPENAI_ERROR")
        super().__init__(message, **kwargs)


# =============================================================================
# Request Building
# =============================================================================

def is_newer_model(model: str) -> bool:
    """gpt-5 and o-series models take max_completion_tokens and no temperature."""
    return "gpt-5" in model or model.startswith("o3") or model.startswith("o4")


def build_tools(agent: AgentConfig) -> list[dict[str, Any]]:
    """Built-in tools enabled on the agent, followed by its custom tools."""
    tools: list[dict[str, Any]] = []
    config = agent.openai_agent_config

    if config.use_web_search:
        tools.append({"type": "web_search_preview"})
    if config.use_file_search:
        tools.append({"type": "file_search"})
    if config.use_code_interpreter:
        tools.append({"type": "code_interpreter"})

    tools.extend(agent.tools_config)
    return tools


def build_user_message(input_data: dict[str, Any], context: str | None = None) -> str:
    payload = json.dumps(input_data, ensure_ascii=False, default=str)
    if context:
        return f"[Contexto: {context}]\n\n{payload}"
    return payload


def build_request(
    agent: AgentConfig,
    input_data: dict[str, Any],
    context: str | None = None,
) -> dict[str, Any]:
    """Keyword arguments for chat.completions.create()."""
    model = agent.model_name or settings.OPENAI_MODEL

    request: dict[str, Any] = {
        "model": model,
        "messages": [
            {"role": "system", "content": agent.instructions},
            {"role": "user", "content": build_user_message(input_data, context)},
        ],
    }

    tools = build_tools(agent)
    if tools:
        request["tools"] = tools

    if is_newer_model(model):
        request["max_completion_tokens"] = settings.OPENAI_MAX_TOKENS
    else:
        request["max_tokens"] = settings.OPENAI_MAX_TOKENS
        request["temperature"] = settings.OPENAI_TEMPERATURE

    return request


def parse_reply(reply: str) -> dict[str, Any]:
    """JSON object replies are used as-is; anything else is wrapped as content."""
    try:
        parsed = json.loads(reply)
    except (json.JSONDecodeError, TypeError):
        return {"content": reply}

    if isinstance(parsed, dict):
        return parsed
    return {"content": parsed}


# =============================================================================
# Runner
# =============================================================================

class OpenAIAgentRunner:
    """
    Executes dynamic/hybrid agents against the Chat Completions API.

    Attributes:
        client: OpenAI client (injected in tests)
    """

    def __init__(self, client: OpenAI | None = None):
        self.client = client or OpenAI(api_key=settings.OPENAI_API_KEY)

    def run(
        self,
        agent: AgentConfig,
        input_data: dict[str, Any],
        context: str | None = None,
    ) -> dict[str, Any]:
        """
        Run the agent once.

        Returns:
            Parsed reply plus `summary`, `model_used` and `tokens_used`

        Raises:
            OpenAIAgentError: If the API call fails
        """
        request = build_request(agent, input_data, context)
        logger.info(f"Calling OpenAI for agent {agent.id} with model {request['model']}")

        try:
            response = self.client.chat.completions.create(**request)
        except Exception as e:
            raise OpenAIAgentError(
                message=f"OpenAI API call failed: {e}",
                suggestion="Check OPENAI_API_KEY and that the agent's model_name exists",
                details={"agent_id": agent.id, "model": request["model"]},
            )

        reply = ""
        if response.choices:
            reply = response.choices[0].message.content or ""

        tokens_used = response.usage.total_tokens if response.usage else 0
        logger.debug(f"OpenAI reply for agent {agent.id}: {reply[:100]}...")

        return {
            **parse_reply(reply),
            "summary": reply[:SUMMARY_LENGTH],
            "model_used": request["model"],
            "tokens_used": tokens_used,
        }
