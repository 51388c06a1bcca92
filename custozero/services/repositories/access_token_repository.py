"""Access token data access layer.

Every mutation is a single conditional UPDATE or an INSERT guarded by a
unique index, so concurrent webhooks and polls cannot lose updates on the
same row. Each order id applied to a token is claimed in access_token_orders
before the token row changes; a second claim of the same id fails there.
"""

import logging
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from custozero.models import AccessToken, AccessTokenOrder
from custozero.services.repositories.exceptions import DuplicateError

logger = logging.getLogger(__name__)


class AccessTokenRepository:
    """Centralized access token data access.

    Naming conventions:
    - find_* : Query that may return None
    - create_* : Insert new record
    - burn_*/upgrade_*/renew_* : Conditional update, returns whether a row changed

    The repository flushes but never commits; services own the transaction.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    @property
    def session(self) -> Session:
        return self._db

    def find_by_token(self, token: str) -> AccessToken | None:
        """Find token row by its value."""
        return self._db.query(AccessToken).filter(AccessToken.token == token).first()

    def find_by_order_id(self, order_id: str) -> AccessToken | None:
        """Find the row any upstream order was applied to, latest or earlier."""
        return self._db.query(AccessToken).filter(self._minted_for(order_id)).first()

    def find_latest_by_email(self, email: str) -> AccessToken | None:
        """Most relevant row for an email, used or not (lifetime first, then newest)."""
        return (
            self._db.query(AccessToken)
            .filter(AccessToken.email == email)
            .order_by(AccessToken.is_lifetime.desc(), AccessToken.created_at.desc())
            .first()
        )

    def find_latest_unused_by_email(self, email: str) -> AccessToken | None:
        """Most relevant unused row for an email (lifetime first, then newest)."""
        return (
            self._db.query(AccessToken)
            .filter(AccessToken.email == email, AccessToken.used.is_(False))
            .order_by(AccessToken.is_lifetime.desc(), AccessToken.created_at.desc())
            .first()
        )

    def has_any_for_email(self, email: str) -> bool:
        """Whether the email ever received a token."""
        return (
            self._db.query(AccessToken.token).filter(AccessToken.email == email).first()
            is not None
        )

    def create(
        self,
        email: str,
        *,
        customer_name: str,
        order_id: str | None = None,
        expires_at: datetime | None = None,
        is_lifetime: bool = False,
    ) -> AccessToken:
        """Insert a new token row, recording its order.

        Raises:
            DuplicateError: order_id is already stored (concurrent delivery).
                The session is rolled back before raising.
        """
        access_token = AccessToken(
            email=email,
            customer_name=customer_name,
            order_id=order_id,
            expires_at=None if is_lifetime else expires_at,
            is_lifetime=is_lifetime,
            used=False,
        )
        if order_id:
            access_token.orders.append(AccessTokenOrder(order_id=order_id))
        self._db.add(access_token)
        self._flush_claiming(order_id)
        logger.debug(f"Created access token for {email} (order={order_id})")
        return access_token

    def burn(self, token: str) -> bool:
        """Mark an unused token as used. False if it was already burned."""
        updated = (
            self._db.query(AccessToken)
            .filter(AccessToken.token == token, AccessToken.used.is_(False))
            .update({AccessToken.used: True}, synchronize_session="fetch")
        )
        return updated == 1

    def burn_by_order_id(self, order_id: str) -> int:
        """Burn every unused token an order was applied to. Returns rows changed."""
        return (
            self._db.query(AccessToken)
            .filter(self._minted_for(order_id), AccessToken.used.is_(False))
            .update({AccessToken.used: True}, synchronize_session="fetch")
        )

    def upgrade_to_lifetime(
        self, token: str, *, order_id: str | None, customer_name: str
    ) -> bool:
        """Turn a row into a lifetime token in place, keeping its value."""
        self._claim_order(token, order_id)
        updated = self._update_claiming_order(
            (AccessToken.token == token,),
            {
                AccessToken.is_lifetime: True,
                AccessToken.used: False,
                AccessToken.expires_at: None,
                AccessToken.order_id: order_id,
                AccessToken.customer_name: customer_name,
            },
        )
        return updated == 1

    def renew_temporary(
        self,
        token: str,
        *,
        expires_at: datetime,
        order_id: str | None,
        customer_name: str,
    ) -> bool:
        """Reopen a temporary row with a new window. Never touches lifetime rows."""
        self._claim_order(token, order_id)
        updated = self._update_claiming_order(
            (AccessToken.token == token, AccessToken.is_lifetime.is_(False)),
            {
                AccessToken.used: False,
                AccessToken.expires_at: expires_at,
                AccessToken.order_id: order_id,
                AccessToken.customer_name: customer_name,
            },
        )
        return updated == 1

    @staticmethod
    def _minted_for(order_id: str):
        """Rows an order was applied to, via the order log or the latest-order column."""
        claimed = select(AccessTokenOrder.token).where(AccessTokenOrder.order_id == order_id)
        return or_(AccessToken.token.in_(claimed), AccessToken.order_id == order_id)

    def _claim_order(self, token: str, order_id: str | None) -> None:
        """Record that ``order_id`` was applied to ``token``."""
        if not order_id:
            return
        self._db.add(AccessTokenOrder(order_id=order_id, token=token))
        self._flush_claiming(order_id)

    def _flush_claiming(self, order_id: str | None) -> None:
        try:
            self._db.flush()
        except IntegrityError as e:
            self._db.rollback()
            raise DuplicateError("AccessToken", "order_id", str(order_id)) from e

    def _update_claiming_order(self, criteria: tuple, values: dict) -> int:
        """Run an UPDATE that writes order_id, mapping unique violations to DuplicateError."""
        try:
            return (
                self._db.query(AccessToken)
                .filter(*criteria)
                .update(values, synchronize_session="fetch")
            )
        except IntegrityError as e:
            self._db.rollback()
            order_id = values.get(AccessToken.order_id)
            raise DuplicateError("AccessToken", "order_id", str(order_id)) from e
