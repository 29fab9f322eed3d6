# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret for verifying Supabase access tokens"
    )

    # -------------------------------------------------------------------------
    # Edge Function Invocation
    # -------------------------------------------------------------------------

    EDGE_FUNCTION_TIMEOUT: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Default per-attempt timeout for edge function calls (seconds)"
    )

    EDGE_FUNCTION_RETRIES: int = Field(
        default=1,
        ge=0,
        le=10,
        description="Default number of retries after a failed edge function call"
    )

    EDGE_FUNCTION_CACHE_TTL: float = Field(
        default=300.0,
        gt=0,
        description="Default TTL for cached edge function responses (seconds)"
    )

    EDGE_FUNCTION_BATCH_CONCURRENCY: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Max concurrent calls in a batch invocation"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # OpenAI / LLM Configuration
    # -------------------------------------------------------------------------

    OPENAI_API_KEY: str = Field(
        ...,
        description="OpenAI API key for dynamic agents"
    )

    OPENAI_MODEL: str = Field(
        default="gpt-5-mini-2025-08-07",
        description="Default model for agents that don't set model_name"
    )

    OPENAI_MAX_TOKENS: int = Field(
        default=4000,
        ge=1,
        description="Token limit for agent completions"
    )

    OPENAI_TEMPERATURE: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature for models that accept one"
    )

    # -------------------------------------------------------------------------
    # n8n Workflows
    # -------------------------------------------------------------------------

    N8N_AUTH_USER: str | None = Field(
        default=None,
        description="Basic auth user for n8n webhooks"
    )

    N8N_AUTH_PASS: str | None = Field(
        default=None,
        description="Basic auth password for n8n webhooks"
    )

    N8N_DEFAULT_TIMEOUT_MS: int = Field(
        default=300000,
        ge=1000,
        description="Default n8n webhook timeout when the agent doesn't set one"
    )

    # -------------------------------------------------------------------------
    # Inbound Email (SendGrid Inbound Parse)
    # -------------------------------------------------------------------------

    SENDGRID_INBOUND_SECRET: str | None = Field(
        default=None,
        description="Shared secret expected on the inbound parse webhook URL"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="DEBUG-level logging in the API and worker"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:5173, https://app.buildera.io" -> ["http://localhost:5173", "https://app.buildera.io"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def functions_base_url(self) -> str:
        """Base URL for Supabase Edge Functions."""
        return f"{self.SUPABASE_URL.rstrip('/')}/functions/v1"

    @property
    def n8n_auth_configured(self) -> bool:
        return bool(self.N8N_AUTH_USER and self.N8N_AUTH_PASS)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Parses .env and validates once, not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
