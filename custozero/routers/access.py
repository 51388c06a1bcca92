"""Access token router: email polling and token validation."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from custozero.config import settings
from custozero.database import get_db
from custozero.rate_limiter import limiter
from custozero.schemas.access import (
    PollTokenRequest,
    PollTokenResponse,
    ValidateTokenRequest,
    ValidateTokenResponse,
)
from custozero.services.repositories import AccessTokenRepository
from custozero.services.token_poller import TokenPoller
from custozero.services.token_validator import TokenValidation, TokenValidator, ValidToken

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/access", tags=["access"])


def _validation_response(result: TokenValidation) -> ValidateTokenResponse:
    if isinstance(result, ValidToken):
        return ValidateTokenResponse(
            valid=True,
            email=result.email,
            created_at=result.created_at,
            expires_at=result.expires_at,
            is_lifetime=result.is_lifetime,
        )
    return ValidateTokenResponse(valid=False, error=result.reason)


@router.post("/poll-token", response_model=PollTokenResponse, response_model_by_alias=True)
@limiter.limit(settings.poll_rate_limit)
def poll_token(
    request: Request, data: PollTokenRequest, db: Session = Depends(get_db)
) -> PollTokenResponse:
    """
    Exchange an email for its most relevant active token.

    Called repeatedly by the processing page while the payment webhook is
    in flight; ``message`` tells "expired" apart from "used" and "unknown".
    """
    result = TokenPoller(AccessTokenRepository(db)).poll(data.email)
    return PollTokenResponse(
        token=result.token,
        created_at=result.created_at,
        expires_at=result.expires_at,
        is_lifetime=result.is_lifetime,
        has_any_token=result.has_any_token,
        expired=result.expired,
        message=result.message,
    )


@router.post(
    "/validate-token", response_model=ValidateTokenResponse, response_model_by_alias=True
)
def validate_token(
    data: ValidateTokenRequest, db: Session = Depends(get_db)
) -> ValidateTokenResponse:
    """Check a token without consuming it (recurring 24h pass)."""
    result = TokenValidator(AccessTokenRepository(db)).check_only(data.token)
    return _validation_response(result)


@router.post(
    "/redeem-token", response_model=ValidateTokenResponse, response_model_by_alias=True
)
def redeem_token(
    data: ValidateTokenRequest, db: Session = Depends(get_db)
) -> ValidateTokenResponse:
    """Validate a one-time link token and burn it in the same request."""
    result = TokenValidator(AccessTokenRepository(db)).redeem_once(data.token)
    return _validation_response(result)
