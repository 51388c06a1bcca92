"""Processed order model."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from custozero.database import Base

if TYPE_CHECKING:
    from custozero.models.access_token import AccessToken


class AccessTokenOrder(Base):
    """Every order id ever applied to a token, kept after upgrades and renewals."""

    __tablename__ = "access_token_orders"

    order_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    token: Mapped[str] = mapped_column(
        String(36), ForeignKey("access_tokens.token", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )

    access_token: Mapped["AccessToken"] = relationship(back_populates="orders")

    def __repr__(self) -> str:
        return f"<AccessTokenOrder(order_id={self.order_id}, token={self.token})>"
