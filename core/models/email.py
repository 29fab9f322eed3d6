# =============================================================================
# core/models/email.py - Inbound Email Schemas
# =============================================================================
# Models for mail received through SendGrid Inbound Parse:
# - MailboxType: which company mailbox an address belongs to
# - InboundAttachment / InboundEmail: the stored company_inbound_emails row
# - InboundEmailResult: webhook response body
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class MailboxType(str, Enum):
    """
    Company mailboxes, in matching priority order.

    An address configured for several mailboxes resolves to the first one.
    """
    BILLING = "billing"
    NOTIFICATIONS = "notifications"
    SUPPORT = "support"
    MARKETING = "marketing"
    GENERAL = "general"

    @property
    def address_column(self) -> str:
        """company_inbound_email_config column holding this mailbox's address."""
        return f"{self.value}_email"

    @property
    def agent_processing_column(self) -> str:
        return f"{self.value}_agent_processing"


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"


class InboundAttachment(BaseModel):
    """Metadata of one attachment (content isn't stored yet)."""

    filename: str | None = None
    content_type: str | None = None
    size: int = 0
    storage_path: str | None = None


class InboundEmail(BaseModel):
    """A company_inbound_emails row ready to insert."""

    company_id: str
    mailbox_type: MailboxType
    from_email: str
    from_name: str | None = None
    to_email: str
    subject: str | None = None
    body_text: str | None = None
    body_html: str | None = None
    attachments: list[InboundAttachment] = Field(default_factory=list)
    raw_headers: dict[str, str] | None = None
    sendgrid_event_id: str | None = None


class InboundEmailResult(BaseModel):
    """Webhook response; success=False with HTTP 200 for unknown recipients."""

    success: bool
    email_id: str | None = None
    mailbox_type: MailboxType | None = None
    agent_processing: bool = False
    message: str | None = None
    details: dict[str, Any] | None = None
