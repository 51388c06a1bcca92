"""Token validation for the diagnostic pages.

Consumption depends on the call site, not only on the token state, so the
two entry points are separate:

- ``check_only``: the recurring 24h pass. A valid token stays usable for
  the whole window.
- ``redeem_once``: the magic-link flow. A valid temporary token is burned
  by the same request that reads it.

Both burn temporary tokens found past their expiry. Lifetime tokens are
never burned.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from custozero.constants import InvalidReason
from custozero.database import commit_or_raise
from custozero.exceptions import ValidationError
from custozero.models import AccessToken
from custozero.services.repositories import AccessTokenRepository
from custozero.services.token_policy import as_utc, effective_expiry, is_expired, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidToken:
    """Token grants access right now."""

    email: str
    created_at: datetime
    expires_at: datetime | None
    is_lifetime: bool

    valid = True


@dataclass(frozen=True)
class InvalidToken:
    """Token does not grant access; ``reason`` is an InvalidReason."""

    reason: str

    valid = False


TokenValidation = ValidToken | InvalidToken


class TokenValidator:
    """Evaluates a single token row and applies the lazy expiry burn."""

    def __init__(self, repository: AccessTokenRepository) -> None:
        self._repository = repository

    def check_only(self, token: str, now: datetime | None = None) -> TokenValidation:
        """Validate without consuming a valid token."""
        token = _require_token(token)
        result = self._evaluate(token, now or utcnow())
        logger.info(f"Token check {token}: {_describe(result)}")
        return result

    def redeem_once(self, token: str, now: datetime | None = None) -> TokenValidation:
        """Validate and burn a valid temporary token in the same request.

        When two redemptions race, only the one whose conditional update
        changed the row succeeds; the other reports ALREADY_USED.
        """
        token = _require_token(token)
        result = self._evaluate(token, now or utcnow())
        if isinstance(result, ValidToken) and not result.is_lifetime:
            if not self._repository.burn(token):
                self._repository.session.rollback()
                logger.info(f"Token {token} was redeemed concurrently")
                return InvalidToken(InvalidReason.ALREADY_USED)
            commit_or_raise(self._repository.session)
            logger.info(f"Token {token} redeemed and burned")
        logger.info(f"Token redeem {token}: {_describe(result)}")
        return result

    def _evaluate(self, token: str, now: datetime) -> TokenValidation:
        access_token = self._repository.find_by_token(token)
        if access_token is None:
            return InvalidToken(InvalidReason.NOT_FOUND)

        if access_token.used:
            return InvalidToken(InvalidReason.ALREADY_USED)

        if access_token.is_lifetime:
            return _valid(access_token)

        if is_expired(access_token, now):
            # Burn lazily on the first access after expiry
            self._repository.burn(access_token.token)
            commit_or_raise(self._repository.session)
            logger.info(f"Token {access_token.token} expired, marked as used")
            return InvalidToken(InvalidReason.EXPIRED)

        return _valid(access_token)


def _require_token(token: str) -> str:
    if not token or not token.strip():
        raise ValidationError("Token é obrigatório")
    return token.strip()


def _valid(access_token: AccessToken) -> ValidToken:
    return ValidToken(
        email=access_token.email,
        created_at=as_utc(access_token.created_at),
        expires_at=effective_expiry(access_token),
        is_lifetime=access_token.is_lifetime,
    )


def _describe(result: TokenValidation) -> str:
    if isinstance(result, ValidToken):
        return "lifetime" if result.is_lifetime else "valid"
    return result.reason
