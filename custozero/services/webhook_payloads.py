"""Provider webhook payload shapes and their mapping to a canonical order.

Kiwify, Cakto and an older generic format each post a different JSON body.
Each shape is parsed into its own pydantic model and mapped by a pure
function to ``CanonicalOrder`` before any token logic runs, so the
services never see provider-specific fields.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from custozero.constants import DEFAULT_CUSTOMER_NAME, OrderEvent, Provider
from custozero.exceptions import ValidationError
from custozero.services.shared.email_address import normalize_email

logger = logging.getLogger(__name__)

APPROVED_STATUSES = {"paid", "approved"}
CAKTO_CANCEL_EVENTS = {"chargeback", "purchase_canceled", "subscription_canceled"}
CAKTO_CANCEL_STATUSES = {"canceled", "cancelled", "chargedback"}


@dataclass(frozen=True)
class CanonicalOrder:
    """Provider-independent view of a payment event."""

    event: str
    provider: str
    order_id: str | None
    email: str | None
    customer_name: str
    amount_cents: int | None = None


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _stringify_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _to_cents(value: float | None) -> int | None:
    if value is None:
        return None
    return int(round(value))


# Providers send numeric or string ids
OrderId = Annotated[str | None, BeforeValidator(_stringify_id)]


# Kiwify (root-level fields, capitalized nested objects)


class KiwifyCustomer(_Payload):
    email: str | None = None
    full_name: str | None = None
    first_name: str | None = None


class KiwifyCommissions(_Payload):
    charge_amount: float | None = None


class KiwifyPayload(_Payload):
    kind: Literal["kiwify"] = "kiwify"
    order_id: OrderId = None
    order_status: str | None = None
    webhook_event_type: str
    customer: KiwifyCustomer = Field(alias="Customer")
    commissions: KiwifyCommissions | None = Field(None, alias="Commissions")


# Cakto (event at the root, everything else under "data")


class CaktoCustomer(_Payload):
    email: str | None = None
    name: str | None = None


class CaktoData(_Payload):
    id: OrderId = None
    status: str | None = None
    customer: CaktoCustomer | None = None
    amount: float | None = None


class CaktoPayload(_Payload):
    kind: Literal["cakto"] = "cakto"
    event: str | None = None
    data: CaktoData = Field(default_factory=CaktoData)


# Generic format accepted on the Kiwify endpoint for compatibility


class LegacyCustomer(_Payload):
    email: str | None = None
    name: str | None = None


class LegacyPayload(_Payload):
    kind: Literal["legacy"] = "legacy"
    event: str | None = None
    status: str | None = None
    order_id: OrderId = None
    transaction_id: OrderId = None
    customer: LegacyCustomer | None = None
    email: str | None = None
    customer_name: str | None = None
    amount: float | None = None


WebhookPayload = KiwifyPayload | CaktoPayload | LegacyPayload


def parse_payload(provider: str, body: Any) -> WebhookPayload:
    """Pick and parse the payload shape for a provider endpoint.

    Raises:
        ValidationError: body is not a JSON object or does not fit the shape.
    """
    if not isinstance(body, dict):
        raise ValidationError("Webhook payload must be a JSON object")

    try:
        if provider == Provider.CAKTO:
            return CaktoPayload.model_validate(body)
        if "webhook_event_type" in body and "Customer" in body:
            return KiwifyPayload.model_validate(body)
        return LegacyPayload.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Malformed {provider} payload: {e.error_count()} invalid field(s)"
        ) from e


def _kiwify_event(payload: KiwifyPayload) -> str:
    event_type = payload.webhook_event_type
    if event_type == "order_approved" or payload.order_status == "paid":
        return OrderEvent.PAID
    if event_type == "order_refunded":
        return OrderEvent.REFUNDED
    if event_type == "order_cancelled":
        return OrderEvent.CANCELLED
    return OrderEvent.UNKNOWN


def _cakto_event(payload: CaktoPayload) -> str:
    status = (payload.data.status or "").lower()
    if payload.event == "purchase_approved" or status in APPROVED_STATUSES:
        return OrderEvent.PAID
    if payload.event in {"refund", "purchase_refunded"} or status == "refunded":
        return OrderEvent.REFUNDED
    if payload.event in CAKTO_CANCEL_EVENTS or status in CAKTO_CANCEL_STATUSES:
        return OrderEvent.CANCELLED
    return OrderEvent.UNKNOWN


def _legacy_event(payload: LegacyPayload) -> str:
    if payload.event in {OrderEvent.PAID, OrderEvent.REFUNDED, OrderEvent.CANCELLED}:
        return payload.event
    if (payload.status or "").lower() in APPROVED_STATUSES:
        return OrderEvent.PAID
    return OrderEvent.UNKNOWN


def to_canonical(payload: WebhookPayload) -> CanonicalOrder:
    """Map any provider shape to a CanonicalOrder."""
    if isinstance(payload, KiwifyPayload):
        customer = payload.customer
        return CanonicalOrder(
            event=_kiwify_event(payload),
            provider=Provider.KIWIFY,
            order_id=payload.order_id,
            email=normalize_email(customer.email) if customer.email else None,
            customer_name=customer.full_name or customer.first_name or DEFAULT_CUSTOMER_NAME,
            amount_cents=_to_cents(payload.commissions.charge_amount)
            if payload.commissions
            else None,
        )

    if isinstance(payload, CaktoPayload):
        customer = payload.data.customer
        email = customer.email if customer else None
        return CanonicalOrder(
            event=_cakto_event(payload),
            provider=Provider.CAKTO,
            order_id=payload.data.id,
            email=normalize_email(email) if email else None,
            customer_name=(customer.name if customer else None) or DEFAULT_CUSTOMER_NAME,
            amount_cents=_to_cents(payload.data.amount),
        )

    customer = payload.customer
    email = (customer.email if customer else None) or payload.email
    return CanonicalOrder(
        event=_legacy_event(payload),
        provider=Provider.LEGACY,
        order_id=payload.order_id or payload.transaction_id,
        email=normalize_email(email) if email else None,
        customer_name=(customer.name if customer else None)
        or payload.customer_name
        or DEFAULT_CUSTOMER_NAME,
        amount_cents=_to_cents(payload.amount),
    )


def normalize_payload(provider: str, body: Any) -> CanonicalOrder:
    """Parse a raw webhook body and return its canonical order."""
    order = to_canonical(parse_payload(provider, body))
    logger.info(
        f"Webhook received: provider={order.provider} event={order.event} "
        f"order_id={order.order_id} email={order.email} amount={order.amount_cents}"
    )
    return order
