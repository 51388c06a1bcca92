"""Payment webhook processing: turns a confirmed order into a token.

Processing order matters for idempotency under at-least-once delivery:

1. Ignore anything that is not a paid order (optionally revoke on refund).
2. Look up the token any earlier delivery of order_id was applied to,
   BEFORE any write. Upgrades and renewals replace a row's latest order_id,
   so the lookup also reads the access_token_orders log.
3. Apply the purchase tier (insert, upgrade in place, or renew).

A concurrent delivery of the same order that slips past step 2 is stopped
by the unique order_id in access_token_orders; the loser returns the winner's token.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from urllib.parse import quote

from custozero.config import settings
from custozero.constants import OrderEvent, Provider, PurchaseTier
from custozero.database import commit_or_raise
from custozero.exceptions import ConflictError, TransientStoreError, ValidationError
from custozero.models import AccessToken
from custozero.services.repositories import AccessTokenRepository, DuplicateError
from custozero.services.token_policy import effective_expiry, temporary_expiry, utcnow
from custozero.services.webhook_payloads import CanonicalOrder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookResult:
    """Outcome of a webhook delivery."""

    message: str
    event: str
    email: str | None = None
    customer_name: str | None = None
    token: str | None = None
    redirect_url: str | None = None
    expires_at: datetime | None = None
    is_lifetime: bool = False
    issued: bool = False  # a token was minted or (re)granted by this delivery
    ignored: bool = False


def processing_url(email: str) -> str:
    """Frontend page that polls for the token of ``email``."""
    return f"{settings.app_url}/processando?email={quote(email, safe='')}"


def classify_tier(amount_cents: int | None) -> str:
    """Classify a paid amount into a purchase tier."""
    if amount_cents is None:
        return PurchaseTier.STANDARD
    if amount_cents >= settings.price_lifetime_cents:
        return PurchaseTier.LIFETIME
    if amount_cents >= settings.price_reactivation_cents:
        return PurchaseTier.REACTIVATION
    return PurchaseTier.STANDARD


class WebhookService:
    """Applies a canonical order to the token store."""

    def __init__(
        self,
        repository: AccessTokenRepository,
        *,
        tiered: bool,
        standard_validity: timedelta,
    ) -> None:
        self._repository = repository
        self._tiered = tiered
        self._standard_validity = standard_validity

    @classmethod
    def for_provider(cls, repository: AccessTokenRepository, provider: str) -> "WebhookService":
        """Cakto sells tiers (24h, reactivation, lifetime); Kiwify sells one long pass."""
        if provider == Provider.CAKTO:
            return cls(
                repository,
                tiered=True,
                standard_validity=timedelta(hours=settings.pass_duration_hours),
            )
        return cls(
            repository,
            tiered=False,
            standard_validity=timedelta(days=settings.kiwify_pass_duration_days),
        )

    def process_order(self, order: CanonicalOrder, now: datetime | None = None) -> WebhookResult:
        """Mint, upgrade or renew the token for a paid order.

        Raises:
            ValidationError: paid order without customer email.
            TransientStoreError: the store rejected the write; safe to retry.
        """
        if order.event != OrderEvent.PAID:
            return self._handle_non_payment(order)

        if not order.email:
            raise ValidationError("Email is required")

        if order.order_id:
            existing = self._repository.find_by_order_id(order.order_id)
            if existing is not None:
                logger.info(f"Token already exists for order {order.order_id}")
                return self._already_processed(order, existing)

        now = now or utcnow()
        tier = classify_tier(order.amount_cents) if self._tiered else PurchaseTier.STANDARD
        logger.info(f"Processing {tier} purchase for {order.email} (order={order.order_id})")

        try:
            if tier == PurchaseTier.LIFETIME:
                result = self._grant_lifetime(order)
            elif tier == PurchaseTier.REACTIVATION:
                result = self._reactivate(order, now)
            else:
                result = self._issue_temporary(order, now + self._standard_validity)
        except ConflictError:
            return self._resolve_conflict(order)

        commit_or_raise(self._repository.session)
        logger.info(
            f"Token {result.token} ready for {order.email}: {result.message} "
            f"(lifetime={result.is_lifetime}, expires_at={result.expires_at})"
        )
        return result

    def _handle_non_payment(self, order: CanonicalOrder) -> WebhookResult:
        revocable = order.event in (OrderEvent.REFUNDED, OrderEvent.CANCELLED)
        if revocable and settings.revoke_on_refund and order.order_id:
            revoked = self._repository.burn_by_order_id(order.order_id)
            commit_or_raise(self._repository.session)
            logger.info(f"Revoked {revoked} token(s) for {order.event} order {order.order_id}")
            return WebhookResult(message="Token revoked", event=order.event, ignored=True)

        logger.info(f"Ignoring event: {order.event} (order={order.order_id})")
        return WebhookResult(message="Event ignored", event=order.event, ignored=True)

    def _grant_lifetime(self, order: CanonicalOrder) -> WebhookResult:
        existing = self._repository.find_latest_by_email(order.email)
        try:
            if existing is not None:
                self._repository.upgrade_to_lifetime(
                    existing.token, order_id=order.order_id, customer_name=order.customer_name
                )
                return self._result(order, existing.token, None, "Upgraded to lifetime access")

            created = self._repository.create(
                order.email,
                customer_name=order.customer_name,
                order_id=order.order_id,
                is_lifetime=True,
            )
        except DuplicateError as e:
            raise ConflictError(str(order.order_id)) from e
        return self._result(order, created.token, None, "Lifetime access created")

    def _reactivate(self, order: CanonicalOrder, now: datetime) -> WebhookResult:
        existing = self._repository.find_latest_by_email(order.email)
        if existing is not None and existing.is_lifetime:
            logger.info(f"{order.email} already has lifetime access, ignoring reactivation")
            return self._keep_lifetime(order, existing)

        expires_at = temporary_expiry(now)
        if existing is None:
            return self._issue_temporary(order, expires_at, message="24h access created")

        try:
            renewed = self._repository.renew_temporary(
                existing.token,
                expires_at=expires_at,
                order_id=order.order_id,
                customer_name=order.customer_name,
            )
        except DuplicateError as e:
            raise ConflictError(str(order.order_id)) from e

        if not renewed:
            # Upgraded to lifetime between our read and the conditional update
            logger.info(f"Token {existing.token} became lifetime concurrently, not renewing")
            return self._keep_lifetime(order, existing)
        return self._result(order, existing.token, expires_at, "Token reactivated for 24 hours")

    def _issue_temporary(
        self,
        order: CanonicalOrder,
        expires_at: datetime,
        message: str = "Token created successfully",
    ) -> WebhookResult:
        try:
            created = self._repository.create(
                order.email,
                customer_name=order.customer_name,
                order_id=order.order_id,
                expires_at=expires_at,
            )
        except DuplicateError as e:
            raise ConflictError(str(order.order_id)) from e
        return self._result(order, created.token, expires_at, message)

    def _keep_lifetime(self, order: CanonicalOrder, existing: AccessToken) -> WebhookResult:
        """Never downgrade a lifetime token; report it unchanged."""
        return WebhookResult(
            message="User already has lifetime access",
            event=order.event,
            email=order.email,
            customer_name=order.customer_name,
            token=existing.token,
            redirect_url=processing_url(order.email),
            is_lifetime=True,
        )

    def _resolve_conflict(self, order: CanonicalOrder) -> WebhookResult:
        """Return the token stored by the concurrent delivery that won the race."""
        winner = self._repository.find_by_order_id(order.order_id) if order.order_id else None
        if winner is None:
            raise TransientStoreError(f"Conflicting write for order {order.order_id} not visible")
        logger.info(f"Order {order.order_id} was processed concurrently, returning its token")
        return self._already_processed(order, winner)

    def _already_processed(
        self, order: CanonicalOrder, access_token: AccessToken
    ) -> WebhookResult:
        return WebhookResult(
            message="Token already created",
            event=order.event,
            email=access_token.email,
            customer_name=access_token.customer_name,
            token=access_token.token,
            redirect_url=processing_url(access_token.email),
            expires_at=effective_expiry(access_token),
            is_lifetime=access_token.is_lifetime,
        )

    @staticmethod
    def _result(
        order: CanonicalOrder, token: str, expires_at: datetime | None, message: str
    ) -> WebhookResult:
        return WebhookResult(
            message=message,
            event=order.event,
            email=order.email,
            customer_name=order.customer_name,
            token=token,
            redirect_url=processing_url(order.email),
            expires_at=expires_at,
            is_lifetime=expires_at is None,
            issued=True,
        )
