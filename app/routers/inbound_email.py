# =============================================================================
# app/routers/inbound_email.py - SendGrid Inbound Parse Webhook
# =============================================================================
# SendGrid POSTs multipart/form-data for every mail received on a company
# mailbox. Configure the Inbound Parse URL as:
#   https://<host>/api/v1/webhooks/inbound-email?secret=<SENDGRID_INBOUND_SECRET>
#
# Anything but a 2xx makes SendGrid retry, so unknown recipients answer
# 200 with success=false.
# =============================================================================

import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Query, Request

from app.config import settings
from app.exceptions import InvalidWebhookSecretError
from core.models.email import InboundEmailResult
from core.services.inbound_email import InboundEmailService

logger = logging.getLogger(__name__)

router = APIRouter()

# Binary attachment parts (attachment1, attachment2, ...) aren't stored
TEXT_FIELDS = ("to", "from", "subject", "text", "html", "headers", "attachment-info")


def check_secret(secret: str | None) -> None:
    """No-op unless SENDGRID_INBOUND_SECRET is configured."""
    expected = settings.SENDGRID_INBOUND_SECRET
    if not expected:
        return
    if not secret or not hmac.compare_digest(secret, expected):
        logger.warning("Inbound email rejected: invalid webhook secret")
        raise InvalidWebhookSecretError()


@router.post("/inbound-email", response_model=InboundEmailResult)
async def receive_inbound_email(
    request: Request,
    secret: Annotated[str | None, Query(description="Shared webhook secret")] = None,
):
    """Store an inbound email for the company that owns the recipient mailbox."""
    check_secret(secret)

    form = await request.form()
    fields = {}
    for name in TEXT_FIELDS:
        value = form.get(name)
        if isinstance(value, str):
            fields[name] = value

    return InboundEmailService.process(fields)
