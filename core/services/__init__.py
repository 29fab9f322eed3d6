# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .company_webhooks import CompanyWebhookService
from .inbound_email import InboundEmailService

__all__ = [
    "CompanyWebhookService",
    "InboundEmailService",
]
