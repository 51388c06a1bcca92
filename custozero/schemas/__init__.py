"""Pydantic schemas for API validation."""

from custozero.schemas.access import (
    PollTokenRequest,
    PollTokenResponse,
    ValidateTokenRequest,
    ValidateTokenResponse,
)
from custozero.schemas.common import ErrorResponse
from custozero.schemas.webhook import WebhookResponse

__all__ = [
    "ErrorResponse",
    "PollTokenRequest",
    "PollTokenResponse",
    "ValidateTokenRequest",
    "ValidateTokenResponse",
    "WebhookResponse",
]
