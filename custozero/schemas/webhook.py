"""Schemas for payment webhook responses."""

from datetime import datetime

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Response returned to the payment provider."""

    success: bool = True
    message: str
    event: str | None = None
    redirect_url: str | None = None
    token: str | None = None
    expires_at: datetime | None = None
    is_lifetime: bool | None = None
