# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides agent rows and httpx helpers shared by the test modules
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import httpx
import pytest

FUNCTIONS_URL = "https://test-project.supabase.co/functions/v1"


# =============================================================================
# Helpers
# =============================================================================

def make_response(status_code: int = 200, json_body=None, text: str | None = None, url: str = FUNCTIONS_URL):
    """Build a real httpx.Response for mocked clients."""
    request = httpx.Request("POST", url)
    if json_body is not None:
        return httpx.Response(status_code, json=json_body, request=request)
    return httpx.Response(status_code, text=text or "", request=request)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def response_factory():
    """Factory for httpx responses returned by mocked clients."""
    return make_response


@pytest.fixture
def static_agent_row():
    """platform_agents row for an edge-function agent."""
    return {
        "id": "agent-static-1",
        "name": "Estratega de Marketing",
        "internal_code": "MKTG_STRATEGIST",
        "agent_type": "static",
        "is_active": True,
        "credits_per_use": 2,
        "edge_function_name": "marketing-hub-marketing-strategy",
        "model_name": None,
        "instructions": None,
        "openai_agent_config": None,
        "tools_config": None,
        "n8n_config": None,
    }


@pytest.fixture
def dynamic_agent_row():
    """platform_agents row for an OpenAI-backed agent."""
    return {
        "id": "agent-dynamic-1",
        "name": "Copywriter",
        "internal_code": "COPYWRITER",
        "agent_type": "dynamic",
        "is_active": True,
        "credits_per_use": 1,
        "edge_function_name": None,
        "model_name": "gpt-4o-mini",
        "instructions": "Write short marketing copy. Reply in JSON.",
        "openai_agent_config": {"use_web_search": True},
        "tools_config": [],
        "n8n_config": None,
    }


@pytest.fixture
def n8n_agent_row():
    """platform_agents row for an n8n workflow agent with output mappings."""
    return {
        "id": "agent-n8n-1",
        "name": "Analista de Competencia",
        "internal_code": "COMPETITIVE_INTEL",
        "agent_type": "n8n",
        "is_active": True,
        "credits_per_use": 3,
        "edge_function_name": None,
        "model_name": None,
        "instructions": None,
        "openai_agent_config": None,
        "tools_config": None,
        "n8n_config": {
            "webhook_url": "https://n8n.example.com/webhook/competitors",
            "http_method": "POST",
            "requires_auth": False,
            "timeout_ms": 60000,
            "output_mappings": [
                {"source_path": "analysis.competitors", "target_key": "competitors", "category": "market"},
                {"source_path": "analysis.summary", "target_key": "market_summary", "category": "market"},
                {"source_path": "analysis.missing", "target_key": "never_saved"},
            ],
        },
    }


@pytest.fixture
def company_context():
    """Company data used to build agent payloads."""
    return {
        "company": {
            "id": "company-1",
            "name": "Acme Café",
            "industry_sector": "Alimentos y bebidas",
            "description": "Cafetería de especialidad en Bogotá",
            "website_url": "https://acme.example",
            "country": "Colombia",
        },
        "strategy": {
            "mision": "Servir el mejor café de origen",
            "vision": "Ser la cafetería referente de la ciudad",
            "propuesta_valor": "Café trazable de pequeños productores",
        },
        "audiences": [
            {"name": "Profesionales jóvenes", "age_range": "25-35"},
        ],
        "branding": {
            "primary_color": "#3B2F2F",
            "brand_voice": "Cercana y experta",
        },
    }
