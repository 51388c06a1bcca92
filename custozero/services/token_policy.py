"""Expiry rules shared by the validator, the poller and the webhook handler."""

from datetime import UTC, datetime, timedelta

from custozero.config import settings
from custozero.models import AccessToken

# Legacy rows written before expires_at existed are valid for this long
LEGACY_PASS_DURATION = timedelta(hours=24)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def temporary_expiry(now: datetime | None = None, *, hours: int | None = None) -> datetime:
    """Expiry instant for a temporary token issued at ``now``."""
    now = now or utcnow()
    return now + timedelta(hours=hours if hours is not None else settings.pass_duration_hours)


def effective_expiry(access_token: AccessToken) -> datetime | None:
    """Instant after which a token is expired, or None for lifetime tokens.

    Uses expires_at when set; otherwise falls back to created_at + 24h for
    legacy rows.
    """
    if access_token.is_lifetime:
        return None
    if access_token.expires_at is not None:
        return as_utc(access_token.expires_at)
    return as_utc(access_token.created_at) + LEGACY_PASS_DURATION


def is_expired(access_token: AccessToken, now: datetime | None = None) -> bool:
    """True once ``now`` is strictly past the effective expiry."""
    expiry = effective_expiry(access_token)
    if expiry is None:
        return False
    return as_utc(now or utcnow()) > expiry
