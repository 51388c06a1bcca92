"""Access token model."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from custozero.constants import DEFAULT_CUSTOMER_NAME
from custozero.database import Base

if TYPE_CHECKING:
    from custozero.models.access_token_order import AccessTokenOrder


class AccessToken(Base):
    """Capability granting access to the diagnostic, minted on payment."""

    __tablename__ = "access_tokens"

    token: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    email: Mapped[str] = mapped_column(String(255), index=True)  # lowercased, trimmed
    used: Mapped[bool] = mapped_column(Boolean, default=False)
    is_lifetime: Mapped[bool] = mapped_column(Boolean, default=False)
    # Null for lifetime tokens; null on legacy temporary rows means created_at + 24h
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )
    # Latest order applied; earlier ones stay in access_token_orders
    order_id: Mapped[str | None] = mapped_column(String(255), unique=True)
    customer_name: Mapped[str] = mapped_column(String(255), default=DEFAULT_CUSTOMER_NAME)

    orders: Mapped[list["AccessTokenOrder"]] = relationship(
        back_populates="access_token", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<AccessToken(token={self.token}, email='{self.email}', used={self.used})>"
