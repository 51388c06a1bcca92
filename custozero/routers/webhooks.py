"""Payment provider webhook router."""

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from sqlalchemy.orm import Session

from custozero.config import settings
from custozero.constants import Provider
from custozero.database import get_db
from custozero.exceptions import ValidationError
from custozero.schemas.webhook import WebhookResponse
from custozero.services.email_service import EmailService
from custozero.services.repositories import AccessTokenRepository
from custozero.services.signature_service import SignatureService
from custozero.services.webhook_payloads import normalize_payload
from custozero.services.webhook_service import WebhookResult, WebhookService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

SIGNATURE_HEADER = "X-Kiwify-Signature"


async def read_raw_body(request: Request) -> bytes:
    """Raw request body, read on the event loop so handlers can stay sync."""
    return await request.body()


def _decode_body(raw_body: bytes):
    try:
        return json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("Invalid JSON body") from e


def _process(
    provider: str, body, db: Session, background_tasks: BackgroundTasks
) -> WebhookResponse:
    order = normalize_payload(provider, body)
    result = WebhookService.for_provider(AccessTokenRepository(db), provider).process_order(order)

    if result.issued:
        # Sent after the response; delivery failures never affect the webhook
        background_tasks.add_task(
            EmailService.send_welcome_email,
            result.email,
            result.customer_name,
            result.token,
            result.expires_at,
        )

    return _to_response(result)


def _to_response(result: WebhookResult) -> WebhookResponse:
    if result.ignored:
        return WebhookResponse(message=result.message, event=result.event)
    return WebhookResponse(
        message=result.message,
        event=result.event,
        redirect_url=result.redirect_url,
        token=result.token,
        expires_at=result.expires_at,
        is_lifetime=result.is_lifetime,
    )


@router.post("/kiwify", response_model=WebhookResponse, response_model_exclude_none=True)
def kiwify_webhook(
    background_tasks: BackgroundTasks,
    raw_body: bytes = Depends(read_raw_body),
    signature: str | None = Header(None, alias=SIGNATURE_HEADER),
    db: Session = Depends(get_db),
) -> WebhookResponse:
    """
    Receive a Kiwify order event.

    The raw body is checked against ``X-Kiwify-Signature`` (hex HMAC-SHA256)
    when a shared secret is configured.
    """
    SignatureService.verify(raw_body, signature, settings.kiwify_webhook_secret)
    return _process(Provider.KIWIFY, _decode_body(raw_body), db, background_tasks)


@router.post("/cakto", response_model=WebhookResponse, response_model_exclude_none=True)
def cakto_webhook(
    background_tasks: BackgroundTasks,
    raw_body: bytes = Depends(read_raw_body),
    db: Session = Depends(get_db),
) -> WebhookResponse:
    """Receive a Cakto purchase event. The paid amount selects the access tier."""
    return _process(Provider.CAKTO, _decode_body(raw_body), db, background_tasks)
