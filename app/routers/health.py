# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# Readiness covers the three things an agent run needs: the agents table,
# the edge function credentials and the Celery broker.
# =============================================================================

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(BaseModel):
    """Individual dependency checks."""
    database: str
    edge_functions: str
    broker: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""
    status: str
    checks: ChecksResponse
    timestamp: str


class LivenessResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_database() -> str:
    from lib.supabase_client import SupabaseClient

    try:
        client = SupabaseClient.get_client()
        client.table("platform_agents").select("id").limit(1).execute()
        return "healthy"
    except Exception as e:
        logger.warning(f"Database readiness check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


def check_broker() -> str:
    from workers.celery_app import celery_app

    try:
        with celery_app.connection_for_write() as connection:
            connection.ensure_connection(max_retries=1)
        return "healthy"
    except Exception as e:
        logger.warning(f"Broker readiness check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns basic health status for load balancers and monitoring.
    """
    return HealthResponse(
        status="healthy",
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness_check():
    """
    Readiness check endpoint.

    "degraded" when any dependency is down; queued runs need the broker,
    synchronous runs only need the database and edge functions.
    """
    checks = ChecksResponse(
        database=check_database(),
        edge_functions="configured" if settings.SUPABASE_SERVICE_KEY else "unconfigured",
        broker=check_broker(),
    )

    all_healthy = (
        checks.database == "healthy"
        and checks.edge_functions == "configured"
        and checks.broker == "healthy"
    )

    return ReadinessResponse(
        status="ready" if all_healthy else "degraded",
        checks=checks,
        timestamp=_now(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """
    Liveness check endpoint.

    Used by Kubernetes/Docker for restart decisions.
    """
    return LivenessResponse(status="alive", timestamp=_now())
