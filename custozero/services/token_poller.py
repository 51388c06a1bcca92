"""Email-to-token lookup for customers who arrive without a token.

The client polls this repeatedly (every ~2s, for up to ~60s) while the
payment webhook is still in flight. The only write is the lazy burn of
temporary tokens found past their expiry, so repeated calls are safe.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from custozero.constants import PollMessage, PollOutcome
from custozero.database import commit_or_raise
from custozero.services.repositories import AccessTokenRepository
from custozero.services.shared.email_address import require_valid_email
from custozero.services.token_policy import as_utc, effective_expiry, is_expired, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollResult:
    """Outcome of an email lookup, with the fields the client renders."""

    outcome: str
    message: str
    token: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None
    is_lifetime: bool = False
    has_any_token: bool = False
    expired: bool = False


class TokenPoller:
    """Finds the best active token for an email."""

    def __init__(self, repository: AccessTokenRepository) -> None:
        self._repository = repository

    def poll(self, email: str, now: datetime | None = None) -> PollResult:
        """Look up the most relevant active token for ``email``.

        Raises:
            ValidationError: email is missing or malformed (store untouched).
        """
        normalized_email = require_valid_email(email)
        now = now or utcnow()

        burned_expired = False
        while True:
            candidate = self._repository.find_latest_unused_by_email(normalized_email)
            if candidate is None:
                break

            if candidate.is_lifetime:
                logger.info(f"Lifetime token found for {normalized_email}")
                return PollResult(
                    outcome=PollOutcome.ACTIVE,
                    message=PollMessage.LIFETIME_ACTIVE,
                    token=candidate.token,
                    created_at=as_utc(candidate.created_at),
                    is_lifetime=True,
                    has_any_token=True,
                )

            if not is_expired(candidate, now):
                logger.info(f"Valid token found for {normalized_email}")
                return PollResult(
                    outcome=PollOutcome.ACTIVE,
                    message=PollMessage.TOKEN_FOUND,
                    token=candidate.token,
                    created_at=as_utc(candidate.created_at),
                    expires_at=effective_expiry(candidate),
                    has_any_token=True,
                )

            # Burn and look again: an older row may still hold a longer pass
            logger.info(f"Token expired for {normalized_email}: {candidate.token}")
            self._repository.burn(candidate.token)
            commit_or_raise(self._repository.session)
            burned_expired = True

        if burned_expired:
            return PollResult(
                outcome=PollOutcome.EXPIRED,
                message=PollMessage.PASS_EXPIRED,
                has_any_token=True,
                expired=True,
            )

        if self._repository.has_any_for_email(normalized_email):
            logger.info(f"Only used tokens found for {normalized_email}")
            return PollResult(
                outcome=PollOutcome.EXHAUSTED,
                message=PollMessage.PASS_USED,
                has_any_token=True,
                expired=True,
            )

        logger.info(f"No token found for email {normalized_email}")
        return PollResult(outcome=PollOutcome.NOT_FOUND, message=PollMessage.EMAIL_NOT_FOUND)
