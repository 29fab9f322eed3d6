# =============================================================================
# core/services/inbound_email.py - SendGrid Inbound Parse Handling
# =============================================================================
# Stores mail sent to a company mailbox:
# 1. Resolve the recipient against active company_inbound_email_config rows
# 2. Parse sender, attachments metadata and raw headers
# 3. Insert into company_inbound_emails
# 4. Flag the row as processing when the mailbox has agent processing on
#
# Unknown recipients are not an error: SendGrid retries anything non-2xx,
# so the caller answers 200 with success=False.
# =============================================================================

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping

from core.models.email import (
    InboundAttachment,
    InboundEmail,
    InboundEmailResult,
    MailboxType,
    ProcessingStatus,
)
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

SENDER_PATTERN = re.compile(r'^(?:"?([^"]*)"?\s)?<?([^>]+)>?$')
ANGLE_ADDRESS_PATTERN = re.compile(r"<([^>]+)>")


# =============================================================================
# Parsing
# =============================================================================

def parse_sender(value: str) -> tuple[str | None, str]:
    """
    Split a From header into (name, address).

    '"Jane Doe" <jane@acme.com>' -> ("Jane Doe", "jane@acme.com")
    'jane@acme.com'              -> (None, "jane@acme.com")
    """
    match = SENDER_PATTERN.match(value or "")
    if not match:
        return None, value
    return match.group(1) or None, match.group(2)


def parse_recipient(value: str) -> str:
    match = ANGLE_ADDRESS_PATTERN.search(value or "")
    return match.group(1) if match else value


def parse_headers(raw: str | None) -> dict[str, str] | None:
    """Header block to dict; later duplicates win, continuation lines are dropped."""
    if not raw:
        return None

    headers: dict[str, str] = {}
    for line in raw.split("\n"):
        colon = line.find(":")
        if colon > 0:
            headers[line[:colon].strip()] = line[colon + 1:].strip()
    return headers


def parse_attachments(raw: str | None) -> list[InboundAttachment]:
    """Attachment metadata from SendGrid's attachment-info JSON."""
    if not raw:
        return []

    try:
        info = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Error parsing attachment-info: {e}")
        return []

    if not isinstance(info, dict):
        return []

    return [
        InboundAttachment(
            filename=meta.get("filename"),
            content_type=meta.get("content-type"),
            size=meta.get("size") or 0,
        )
        for meta in info.values()
        if isinstance(meta, dict)
    ]


def match_mailbox(
    configs: list[dict[str, Any]],
    address: str,
) -> tuple[dict[str, Any], MailboxType] | None:
    """First config/mailbox whose address equals the recipient."""
    for config in configs:
        for mailbox in MailboxType:
            if config.get(mailbox.address_column) == address:
                return config, mailbox
    return None


# =============================================================================
# Service
# =============================================================================

class InboundEmailService:
    """Persists inbound company email."""

    @staticmethod
    def process(fields: Mapping[str, Any]) -> InboundEmailResult:
        """
        Handle one Inbound Parse POST.

        Args:
            fields: Form fields (to, from, subject, text, html, headers,
                attachment-info)

        Raises:
            SupabaseClientError: If configs can't be read or the insert fails
        """
        to_email = parse_recipient(fields.get("to") or "")
        from_name, from_email = parse_sender(fields.get("from") or "")

        matched = match_mailbox(SupabaseClient.fetch_inbound_email_configs(), to_email)
        if matched is None:
            logger.info(f"No matching company found for email: {to_email}")
            return InboundEmailResult(success=False, message="No matching company")

        config, mailbox = matched
        raw_headers = parse_headers(fields.get("headers"))

        email = InboundEmail(
            company_id=str(config["company_id"]),
            mailbox_type=mailbox,
            from_email=from_email,
            from_name=from_name,
            to_email=to_email,
            subject=fields.get("subject") or None,
            body_text=fields.get("text") or None,
            body_html=fields.get("html") or None,
            attachments=parse_attachments(fields.get("attachment-info")),
            raw_headers=raw_headers,
            sendgrid_event_id=(raw_headers or {}).get("Message-ID"),
        )

        row = SupabaseClient.insert_inbound_email(email.model_dump(mode="json"))
        email_id = row.get("id")
        logger.info(f"Inbound email {email_id} stored for company {email.company_id} ({mailbox.value})")

        agent_processing = bool(config.get(mailbox.agent_processing_column))
        if agent_processing:
            logger.info(f"Agent processing enabled for mailbox: {mailbox.value}")
            SupabaseClient.update_inbound_email_status(email_id, ProcessingStatus.PROCESSING.value)

        return InboundEmailResult(
            success=True,
            email_id=email_id,
            mailbox_type=mailbox,
            agent_processing=agent_processing,
        )
