# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - agents.py: Agent execution (sync and queued) and task status
# - functions.py: Edge function invoke/batch/cache endpoints
# - companies.py: Company enrichment webhooks
# - inbound_email.py: SendGrid Inbound Parse webhook
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import agents
from . import functions
from . import companies
from . import inbound_email

__all__ = [
    "health",
    "agents",
    "functions",
    "companies",
    "inbound_email",
]
