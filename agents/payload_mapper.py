# =============================================================================
# agents/payload_mapper.py - Agent Payload Mapper
# =============================================================================
# Maps company data to the parameters each agent's edge function expects.
#
# Builders are registered per agent code with the @register decorator:
#
#   @register("BRAND_IDENTITY")
#   def brand_identity(ctx: AgentPayloadContext) -> dict:
#       return {"companyId": ctx.company["id"], ...}
#
# Unknown agent codes get the default payload (ids + configuration).
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from agents.models.execution import AgentPayloadContext

PayloadBuilder = Callable[[AgentPayloadContext], dict[str, Any]]

REGISTRY: dict[str, PayloadBuilder] = {}

DEFAULT_BRAND_COLORS = {"primary": "#3c46b2", "secondary": "#f15438"}


def register(*agent_codes: str):
    """Register a payload builder for one or more agent codes."""
    def decorator(func: PayloadBuilder) -> PayloadBuilder:
        for code in agent_codes:
            REGISTRY[code] = func
        return func
    return decorator


# =============================================================================
# Data Requirements & Function Map
# =============================================================================

@dataclass(frozen=True)
class DataRequirements:
    """Which optional context sections an agent needs loaded."""

    needs_strategy: bool = False
    needs_audiences: bool = False
    needs_branding: bool = False


_STRATEGY = DataRequirements(needs_strategy=True)
_STRATEGY_AUDIENCES = DataRequirements(needs_strategy=True, needs_audiences=True)
_STRATEGY_BRANDING = DataRequirements(needs_strategy=True, needs_branding=True)

DATA_REQUIREMENTS: dict[str, DataRequirements] = {
    "MKTG_STRATEGIST": _STRATEGY_AUDIENCES,
    "CAMPAIGN_GENERATOR": DataRequirements(True, True, True),
    "BUSINESS_STRATEGIST": _STRATEGY,
    "COMPANY_STRATEGY": _STRATEGY,
    "CALENDAR_PLANNER": _STRATEGY,
    "ERA_ASSISTANT": _STRATEGY,
    "LEARNING_TUTOR": _STRATEGY,
    "NBA_ENGINE": _STRATEGY,
    "INSIGHTS_GENERATOR": _STRATEGY,
    "COMPETITIVE_INTEL": _STRATEGY,
    "CONTENT_CREATOR": _STRATEGY_BRANDING,
    "IMAGE_CREATOR": _STRATEGY_BRANDING,
    "REEL_CREATOR": _STRATEGY_BRANDING,
    "TEXT_OPTIMIZER": _STRATEGY_BRANDING,
    "ERA_OPTIMIZER": _STRATEGY_BRANDING,
    "BRAND_IDENTITY": _STRATEGY_BRANDING,
    "AUDIENCE_ANALYST": _STRATEGY_AUDIENCES,
    "AUDIENCE_INTELLIGENCE": _STRATEGY_AUDIENCES,
}

EDGE_FUNCTIONS: dict[str, str] = {
    "MKTG_STRATEGIST": "marketing-hub-marketing-strategy",
    "BUSINESS_STRATEGIST": "company-strategy",
    "COMPANY_STRATEGY": "company-strategy",
    "CAMPAIGN_GENERATOR": "campaign-ai-generator",
    "CAMPAIGN_OPTIMIZER": "era-campaign-optimizer",
    "CONTENT_CREATOR": "marketing-hub-post-creator",
    "CALENDAR_PLANNER": "marketing-hub-content-calendar",
    "IMAGE_CREATOR": "marketing-hub-image-creator",
    "VIDEO_CREATOR": "marketing-hub-video-creator",
    "REEL_CREATOR": "marketing-hub-reel-creator",
    "TEXT_OPTIMIZER": "era-content-optimizer",
    "ERA_OPTIMIZER": "era-content-optimizer",
    "CONTENT_GENERATOR": "generate-company-content",
    "CONTENT_PUBLISHER": "upload-post-manager",
    "INSIGHTS_GENERATOR": "content-insights-generator",
    "AUDIENCE_ANALYST": "analyze-social-audience",
    "COMPETITIVE_INTEL": "competitive-intelligence-agent",
    "LINKEDIN_ANALYST": "linkedin-intelligent-analysis",
    "INSTAGRAM_ANALYST": "instagram-intelligent-analysis",
    "FACEBOOK_ANALYST": "facebook-intelligent-analysis",
    "TIKTOK_ANALYST": "tiktok-intelligent-analysis",
    "SOCIAL_ANALYZER": "social-media-analyzer",
    "AUDIENCE_INTELLIGENCE": "audience-intelligence-analysis",
    "SEMANTIC_ANALYZER": "semantic-content-analyzer",
    "PREMIUM_INSIGHTS": "premium-ai-insights",
    "BRAND_IDENTITY": "brand-identity",
    "ERA_ASSISTANT": "era-chat",
    "LEARNING_TUTOR": "ai-learning-tutor",
    "NBA_ENGINE": "generate-next-best-actions",
}


def get_agent_data_requirements(agent_code: str) -> DataRequirements:
    return DATA_REQUIREMENTS.get(agent_code, DataRequirements())


def get_agent_edge_function(agent_code: str) -> str | None:
    return EDGE_FUNCTIONS.get(agent_code)


def build_agent_payload(agent_code: str | None, ctx: AgentPayloadContext) -> dict[str, Any]:
    """
    Build the payload for an agent's edge function.

    Example:
        payload = build_agent_payload("BRAND_IDENTITY", ctx)
    """
    builder = REGISTRY.get(agent_code or "", default_payload)
    return builder(ctx)


# =============================================================================
# Builders
# =============================================================================

def _strategy(ctx: AgentPayloadContext) -> dict[str, Any]:
    return ctx.strategy or {}


def _branding(ctx: AgentPayloadContext) -> dict[str, Any]:
    return ctx.branding or {}


def _brand_colors(ctx: AgentPayloadContext) -> dict[str, str]:
    branding = _branding(ctx)
    return {
        "primary": branding.get("primary_color") or DEFAULT_BRAND_COLORS["primary"],
        "secondary": branding.get("secondary_color") or DEFAULT_BRAND_COLORS["secondary"],
    }


def default_payload(ctx: AgentPayloadContext) -> dict[str, Any]:
    return {
        "companyId": ctx.company.get("id"),
        "userId": ctx.user_id,
        **ctx.configuration,
        "language": ctx.language,
    }


@register("MKTG_STRATEGIST")
def marketing_strategist(ctx: AgentPayloadContext) -> dict[str, Any]:
    company = ctx.company
    return {
        "input": {
            "nombre_empresa": company.get("name"),
            "objetivo_de_negocio": company.get("description") or "",
            "propuesta_valor": _strategy(ctx).get("propuesta_valor") or "",
            "sitio_web": company.get("website_url") or "",
            "sector_industria": company.get("industry_sector") or "",
            "audiencias": [
                {
                    "nombre": audience.get("name"),
                    "descripcion": audience.get("description") or "",
                    "pain_points": audience.get("pain_points") or [],
                    "goals": audience.get("goals") or [],
                }
                for audience in ctx.audiences
            ],
            **ctx.configuration,
        },
        "language": ctx.language,
    }


@register("BUSINESS_STRATEGIST", "COMPANY_STRATEGY")
def business_strategist(ctx: AgentPayloadContext) -> dict[str, Any]:
    return {"companyId": ctx.company.get("id"), "userId": ctx.user_id, "language": ctx.language}


@register("CAMPAIGN_GENERATOR")
def campaign_generator(ctx: AgentPayloadContext) -> dict[str, Any]:
    config = ctx.configuration
    return {
        "companyId": ctx.company.get("id"),
        "userId": ctx.user_id,
        "campaignType": config.get("campaign_type") or "awareness",
        "objective": config.get("objective") or "",
        "targetAudience": ctx.audiences[0] if ctx.audiences else None,
        "budget": config.get("budget"),
        "duration": config.get("duration") or "30 days",
        "platforms": config.get("platforms") or ["instagram", "facebook"],
        "language": ctx.language,
    }


@register("CONTENT_CREATOR")
def content_creator(ctx: AgentPayloadContext) -> dict[str, Any]:
    config = ctx.configuration
    brand_voice = _branding(ctx).get("brand_voice")
    tone = _strategy(ctx).get("tono_comunicacion")
    if not tone and isinstance(brand_voice, dict):
        tone = brand_voice.get("tono")
    return {
        "companyId": ctx.company.get("id"),
        "platform": config.get("platform") or "general",
        "contentType": config.get("content_type") or "post",
        "topic": config.get("topic") or "",
        "tone": tone or "profesional",
        "keywords": _strategy(ctx).get("palabras_clave") or [],
        "brandVoice": brand_voice,
        "language": ctx.language,
    }


@register("CALENDAR_PLANNER")
def calendar_planner(ctx: AgentPayloadContext) -> dict[str, Any]:
    config = ctx.configuration
    strategy = _strategy(ctx)
    return {
        "companyId": ctx.company.get("id"),
        "userId": ctx.user_id,
        "period": config.get("period") or "month",
        "platforms": config.get("platforms") or ["instagram", "linkedin"],
        "contentMix": config.get("content_mix") or {
            "educational": 40,
            "promotional": 30,
            "engagement": 30,
        },
        "strategy": {
            "propuesta_valor": strategy.get("propuesta_valor") or "",
            "tono": strategy.get("tono_comunicacion") or "",
            "keywords": strategy.get("palabras_clave") or [],
        },
        "language": ctx.language,
    }


@register("IMAGE_CREATOR")
def image_creator(ctx: AgentPayloadContext) -> dict[str, Any]:
    config = ctx.configuration
    return {
        "input": {
            "identidad_visual": _branding(ctx).get("visual_identity") or "",
            "colores_marca": _brand_colors(ctx),
            "tipo_imagen": config.get("image_type") or "social_post",
            "descripcion": config.get("description") or "",
            "estilo": config.get("style") or "moderno",
        },
        "language": ctx.language,
    }


@register("REEL_CREATOR")
def reel_creator(ctx: AgentPayloadContext) -> dict[str, Any]:
    config = ctx.configuration
    return {
        "input": {
            "identidad_visual": _branding(ctx).get("visual_identity") or "",
            "colores_marca": _brand_colors(ctx),
            "calendario_item": config.get("calendario_item") or {
                "titulo_gancho": config.get("topic") or "Reel para mi negocio",
                "tema_concepto": config.get("concept") or "",
            },
            "duracion": config.get("duration") or "30",
        },
        "language": ctx.language,
    }


@register("TEXT_OPTIMIZER", "ERA_OPTIMIZER")
def text_optimizer(ctx: AgentPayloadContext) -> dict[str, Any]:
    config = ctx.configuration
    return {
        "text": config.get("text") or "",
        "fieldType": config.get("field_type") or "general",
        "context": {
            "companyName": ctx.company.get("name"),
            "industry": ctx.company.get("industry_sector") or "",
            "brandVoice": _branding(ctx).get("brand_voice"),
            "tone": _strategy(ctx).get("tono_comunicacion") or "profesional",
        },
        "language": ctx.language,
    }


def _platform_analyst(platform: str) -> PayloadBuilder:
    def build(ctx: AgentPayloadContext) -> dict[str, Any]:
        config = ctx.configuration
        return {
            "userId": ctx.user_id,
            "companyId": ctx.company.get("id"),
            "platform": platform,
            "profileUrl": ctx.company.get(f"{platform}_url") or config.get("profile_url") or "",
            "analysisType": config.get("analysis_type") or "full",
            "language": ctx.language,
        }
    return build


for _platform in ("linkedin", "instagram", "facebook", "tiktok"):
    register(f"{_platform.upper()}_ANALYST")(_platform_analyst(_platform))


@register("INSIGHTS_GENERATOR")
def insights_generator(ctx: AgentPayloadContext) -> dict[str, Any]:
    config = ctx.configuration
    return {
        "userId": ctx.user_id,
        "companyId": ctx.company.get("id"),
        "platform": config.get("platform") or "all",
        "analysisType": config.get("analysis_type") or "general",
        "language": ctx.language,
    }


@register("AUDIENCE_ANALYST")
def audience_analyst(ctx: AgentPayloadContext) -> dict[str, Any]:
    return {
        "userId": ctx.user_id,
        "companyId": ctx.company.get("id"),
        "platform": ctx.configuration.get("platform") or "all",
        "includeRecommendations": True,
        "language": ctx.language,
    }


@register("COMPETITIVE_INTEL")
def competitive_intel(ctx: AgentPayloadContext) -> dict[str, Any]:
    config = ctx.configuration
    return {
        "companyId": ctx.company.get("id"),
        "userId": ctx.user_id,
        "competitors": config.get("competitors") or [],
        "analysisDepth": config.get("analysis_depth") or "standard",
        "language": ctx.language,
    }


@register("BRAND_IDENTITY")
def brand_identity(ctx: AgentPayloadContext) -> dict[str, Any]:
    company = ctx.company
    return {
        "companyId": company.get("id"),
        "companyName": company.get("name"),
        "industry": company.get("industry_sector") or "",
        "websiteUrl": company.get("website_url") or "",
        "currentBranding": ctx.branding,
        "language": ctx.language,
    }


@register("ERA_ASSISTANT")
def era_assistant(ctx: AgentPayloadContext) -> dict[str, Any]:
    config = ctx.configuration
    return {
        "userId": ctx.user_id,
        "companyId": ctx.company.get("id"),
        "message": config.get("message") or "",
        "conversationHistory": config.get("conversation_history") or [],
        "context": {
            "company": ctx.company.get("name"),
            "strategy": _strategy(ctx).get("propuesta_valor") or "",
            "currentPage": config.get("current_page") or "",
        },
        "language": ctx.language,
    }


@register("NBA_ENGINE")
def next_best_actions(ctx: AgentPayloadContext) -> dict[str, Any]:
    # This function takes snake_case ids
    return {"user_id": ctx.user_id, "company_id": ctx.company.get("id"), "language": ctx.language}
