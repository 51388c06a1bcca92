"""Schemas for token polling and validation endpoints.

Responses use camelCase keys, the format the frontend already consumes.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PollTokenRequest(BaseModel):
    """Schema for exchanging an email for a token.

    Email format is checked by the poller so malformed input maps to 400.
    """

    email: str | None = None


class PollTokenResponse(_CamelModel):
    """Schema for poll responses."""

    token: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None
    is_lifetime: bool = False
    has_any_token: bool = False
    expired: bool = False
    message: str


class ValidateTokenRequest(BaseModel):
    """Schema for validating or redeeming a token."""

    token: str | None = None


class ValidateTokenResponse(_CamelModel):
    """Schema for validation responses; ``error`` carries the invalid reason."""

    valid: bool
    email: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None
    is_lifetime: bool | None = None
    error: str | None = None
