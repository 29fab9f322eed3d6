# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Buildera orchestration API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.auth import routes as auth_routes
from app.config import settings
from app.exceptions import (
    BuilderaException,
    application_error_handler,
    buildera_exception_handler,
    validation_exception_handler,
)
from app.routers import agents, companies, functions, health, inbound_email
from lib.edge_functions import close_edge_function_client
from lib.supabase_client import SupabaseClientError
from lib.utils import ApplicationError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: log the effective configuration
    - Shutdown: close the shared edge function HTTP client
    """
    logger.info(f"Starting Buildera API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(f"Edge functions: {settings.functions_base_url}")

    yield

    logger.info("Shutting down Buildera API")
    close_edge_function_client()


# Create FastAPI application
app = FastAPI(
    title="Buildera API",
    description="""
## Agent Orchestration API

Runs Buildera's platform agents and proxies the Supabase Edge Functions
they are built on.

### Agent Types

| Type | Backend |
|------|---------|
| **static** | A Supabase Edge Function |
| **dynamic / hybrid** | OpenAI chat completion with the agent's instructions |
| **n8n** | An n8n workflow webhook; results saved as company parameters |

Every run checks that the agent is enabled for the company, that the
company has credits, records an `agent_usage_log` row and deducts credits
on success.

### Quick Start

```bash
# Run an agent
curl -X POST http://localhost:8000/api/v1/agents/execute \\
  -H "Authorization: Bearer $TOKEN" \\
  -H "Content-Type: application/json" \\
  -d '{"agent_id": "...", "company_id": "...", "input_data": {"topic": "launch"}}'

# Invoke an edge function with retries
curl -X POST http://localhost:8000/api/v1/functions/get-data-by-url/invoke \\
  -H "Authorization: Bearer $TOKEN" \\
  -d '{"body": {"url": "https://acme.example"}, "options": {"retries": 2}}'
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Verify Supabase tokens and read the user's profile",
        },
        {
            "name": "Agents",
            "description": "Execute platform agents and poll queued runs",
        },
        {
            "name": "Functions",
            "description": "Invoke Supabase Edge Functions with retries, caching and batching",
        },
        {
            "name": "Companies",
            "description": "Company enrichment webhooks",
        },
        {
            "name": "Webhooks",
            "description": "Inbound webhooks from third parties (SendGrid)",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

app.add_exception_handler(BuilderaException, buildera_exception_handler)
app.add_exception_handler(ApplicationError, application_error_handler)
app.add_exception_handler(SupabaseClientError, application_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Agent execution endpoints
app.include_router(
    agents.router,
    prefix="/api/v1/agents",
    tags=["Agents"]
)

# Edge function endpoints
app.include_router(
    functions.router,
    prefix="/api/v1/functions",
    tags=["Functions"]
)

# Company enrichment endpoints
app.include_router(
    companies.router,
    prefix="/api/v1/companies",
    tags=["Companies"]
)

# Third-party webhooks
app.include_router(
    inbound_email.router,
    prefix="/api/v1/webhooks",
    tags=["Webhooks"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Buildera API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
