"""Tests for email-to-token polling."""

from datetime import timedelta

import pytest

from custozero.constants import PollMessage, PollOutcome
from custozero.exceptions import ValidationError
from custozero.services.token_poller import TokenPoller
from tests.conftest import NOW


@pytest.fixture
def poller(repository):
    return TokenPoller(repository)


class TestPoll:
    @pytest.mark.parametrize("email", ["", None, "sem-arroba", "a@b"])
    def test_invalid_email_is_rejected(self, poller, email):
        with pytest.raises(ValidationError):
            poller.poll(email, now=NOW)

    def test_unknown_email(self, poller):
        result = poller.poll("ninguem@example.com", now=NOW)
        assert result.outcome == PollOutcome.NOT_FOUND
        assert result.message == PollMessage.EMAIL_NOT_FOUND
        assert result.has_any_token is False
        assert result.token is None

    def test_active_temporary_token(self, poller, make_token):
        access_token = make_token(expires_at=NOW + timedelta(hours=24))

        result = poller.poll("cliente@example.com", now=NOW)
        assert result.outcome == PollOutcome.ACTIVE
        assert result.token == access_token.token
        assert result.expires_at == NOW + timedelta(hours=24)
        assert result.message == PollMessage.TOKEN_FOUND

    def test_email_is_normalized(self, poller, make_token):
        access_token = make_token(expires_at=NOW + timedelta(hours=24))
        result = poller.poll("  Cliente@Example.COM ", now=NOW)
        assert result.token == access_token.token

    def test_lifetime_wins_over_newer_temporary(self, poller, make_token):
        lifetime = make_token(created_at=NOW - timedelta(days=30), is_lifetime=True)
        make_token(created_at=NOW, expires_at=NOW + timedelta(hours=24))

        result = poller.poll("cliente@example.com", now=NOW)
        assert result.token == lifetime.token
        assert result.is_lifetime is True
        assert result.message == PollMessage.LIFETIME_ACTIVE

    def test_expired_token_is_burned_and_reported(self, poller, make_token, repository):
        access_token = make_token(created_at=NOW - timedelta(hours=25), expires_at=None)

        result = poller.poll("cliente@example.com", now=NOW)
        assert result.outcome == PollOutcome.EXPIRED
        assert result.message == PollMessage.PASS_EXPIRED
        assert result.expired is True
        assert result.token is None
        assert repository.find_by_token(access_token.token).used is True

        # Next poll sees only a used token
        follow_up = poller.poll("cliente@example.com", now=NOW)
        assert follow_up.outcome == PollOutcome.EXHAUSTED
        assert follow_up.message == PollMessage.PASS_USED

    def test_only_used_tokens(self, poller, make_token):
        make_token(expires_at=NOW + timedelta(hours=24), used=True)

        result = poller.poll("cliente@example.com", now=NOW)
        assert result.outcome == PollOutcome.EXHAUSTED
        assert result.has_any_token is True
        assert result.expired is True

    def test_poll_never_consumes_active_token(self, poller, make_token, repository):
        access_token = make_token(expires_at=NOW + timedelta(hours=24))
        for _ in range(5):
            poller.poll("cliente@example.com", now=NOW)
        assert repository.find_by_token(access_token.token).used is False

    def test_older_active_pass_survives_newer_expired_one(self, poller, make_token, repository):
        """A newer expired 24h token must not hide an older 30-day pass."""
        long_pass = make_token(
            created_at=NOW - timedelta(days=5), expires_at=NOW + timedelta(days=25)
        )
        short_pass = make_token(
            created_at=NOW - timedelta(hours=30), expires_at=NOW - timedelta(hours=6)
        )

        result = poller.poll("cliente@example.com", now=NOW)

        assert result.outcome == PollOutcome.ACTIVE
        assert result.token == long_pass.token
        assert result.expires_at == NOW + timedelta(days=25)
        assert repository.find_by_token(short_pass.token).used is True

    def test_all_candidates_expired_burns_each(self, poller, make_token, repository):
        older = make_token(created_at=NOW - timedelta(days=3), expires_at=NOW - timedelta(days=2))
        newer = make_token(created_at=NOW - timedelta(days=2), expires_at=NOW - timedelta(days=1))

        result = poller.poll("cliente@example.com", now=NOW)

        assert result.outcome == PollOutcome.EXPIRED
        assert repository.find_by_token(older.token).used is True
        assert repository.find_by_token(newer.token).used is True
