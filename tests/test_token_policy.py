"""Tests for expiry rules."""

from datetime import datetime, timedelta

from custozero.models import AccessToken
from custozero.services.token_policy import (
    as_utc,
    effective_expiry,
    is_expired,
    temporary_expiry,
)
from tests.conftest import NOW


def _row(**kwargs) -> AccessToken:
    defaults = {"email": "a@example.com", "created_at": NOW, "used": False, "is_lifetime": False}
    defaults.update(kwargs)
    return AccessToken(**defaults)


class TestEffectiveExpiry:
    def test_lifetime_has_no_expiry(self):
        assert effective_expiry(_row(is_lifetime=True, expires_at=NOW)) is None

    def test_uses_expires_at_when_set(self):
        expires_at = NOW + timedelta(days=30)
        assert effective_expiry(_row(expires_at=expires_at)) == expires_at

    def test_legacy_row_falls_back_to_created_at_plus_24h(self):
        assert effective_expiry(_row(expires_at=None)) == NOW + timedelta(hours=24)

    def test_naive_datetimes_are_read_as_utc(self):
        naive = datetime(2026, 3, 1, 12, 0)
        assert effective_expiry(_row(created_at=naive)) == NOW + timedelta(hours=24)
        assert as_utc(naive) == NOW


class TestIsExpired:
    def test_boundary_is_exclusive(self):
        row = _row(expires_at=NOW + timedelta(hours=24))
        assert not is_expired(row, NOW + timedelta(hours=24))
        assert not is_expired(row, NOW + timedelta(hours=24) - timedelta(seconds=1))
        assert is_expired(row, NOW + timedelta(hours=24) + timedelta(seconds=1))

    def test_lifetime_never_expires(self):
        row = _row(is_lifetime=True)
        assert not is_expired(row, NOW + timedelta(days=3650))


def test_temporary_expiry_defaults_to_configured_hours():
    assert temporary_expiry(NOW) == NOW + timedelta(hours=24)
    assert temporary_expiry(NOW, hours=2) == NOW + timedelta(hours=2)
