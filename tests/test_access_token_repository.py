"""Tests for AccessTokenRepository."""

from datetime import timedelta

import pytest

from custozero.services.repositories import DuplicateError
from tests.conftest import NOW


class TestFinders:
    def test_find_latest_prefers_lifetime_over_newer_rows(self, repository, make_token):
        lifetime = make_token(created_at=NOW - timedelta(days=10), is_lifetime=True)
        make_token(created_at=NOW, expires_at=NOW + timedelta(hours=24))

        assert repository.find_latest_by_email("cliente@example.com").token == lifetime.token

    def test_find_latest_unused_skips_used_rows(self, repository, make_token):
        older = make_token(created_at=NOW - timedelta(hours=2), expires_at=NOW + timedelta(hours=1))
        make_token(created_at=NOW, expires_at=NOW + timedelta(hours=24), used=True)

        found = repository.find_latest_unused_by_email("cliente@example.com")
        assert found.token == older.token

    def test_has_any_for_email(self, repository, make_token):
        make_token(used=True)
        assert repository.has_any_for_email("cliente@example.com")
        assert not repository.has_any_for_email("outro@example.com")


class TestCreate:
    def test_create_assigns_uuid_token(self, repository, db):
        access_token = repository.create(
            "novo@example.com", customer_name="Ana", order_id="o-1", expires_at=NOW
        )
        db.commit()

        assert len(access_token.token) == 36
        assert repository.find_by_order_id("o-1").email == "novo@example.com"

    def test_lifetime_create_drops_expiry(self, repository):
        access_token = repository.create(
            "novo@example.com", customer_name="Ana", expires_at=NOW, is_lifetime=True
        )
        assert access_token.expires_at is None

    def test_duplicate_order_id_raises(self, repository, make_token):
        make_token(order_id="o-1")

        with pytest.raises(DuplicateError) as exc_info:
            repository.create("outro@example.com", customer_name="Ana", order_id="o-1")
        assert exc_info.value.field == "order_id"


class TestConditionalUpdates:
    def test_burn_only_changes_unused_rows(self, repository, make_token, db):
        access_token = make_token(expires_at=NOW + timedelta(hours=1))

        assert repository.burn(access_token.token) is True
        db.commit()
        assert repository.burn(access_token.token) is False

    def test_burn_by_order_id(self, repository, make_token):
        make_token(order_id="o-9")
        assert repository.burn_by_order_id("o-9") == 1
        assert repository.burn_by_order_id("o-9") == 0

    def test_upgrade_keeps_token_value(self, repository, make_token, db):
        access_token = make_token(expires_at=NOW - timedelta(hours=1), used=True, order_id="o-1")

        assert repository.upgrade_to_lifetime(
            access_token.token, order_id="o-2", customer_name="Maria"
        )
        db.commit()

        upgraded = repository.find_by_token(access_token.token)
        assert upgraded.is_lifetime is True
        assert upgraded.used is False
        assert upgraded.expires_at is None
        assert upgraded.order_id == "o-2"

    def test_renew_never_touches_lifetime_rows(self, repository, make_token):
        lifetime = make_token(is_lifetime=True)

        renewed = repository.renew_temporary(
            lifetime.token,
            expires_at=NOW + timedelta(hours=24),
            order_id="o-3",
            customer_name="Maria",
        )
        assert renewed is False
        assert repository.find_by_token(lifetime.token).is_lifetime is True

    def test_update_claiming_taken_order_id_raises(self, repository, make_token):
        make_token(email="outro@example.com", order_id="o-1")
        access_token = make_token(expires_at=NOW)

        with pytest.raises(DuplicateError):
            repository.renew_temporary(
                access_token.token,
                expires_at=NOW + timedelta(hours=24),
                order_id="o-1",
                customer_name="Maria",
            )


class TestOrderLog:
    def test_create_records_order(self, repository, db):
        access_token = repository.create("novo@example.com", customer_name="Ana", order_id="o-1")
        db.commit()

        assert [order.order_id for order in access_token.orders] == ["o-1"]

    def test_earlier_order_still_found_after_renewal(self, repository, db):
        access_token = repository.create(
            "novo@example.com", customer_name="Ana", order_id="o-1", expires_at=NOW
        )
        repository.renew_temporary(
            access_token.token,
            expires_at=NOW + timedelta(hours=24),
            order_id="o-2",
            customer_name="Ana",
        )
        db.commit()

        assert repository.find_by_order_id("o-1").token == access_token.token
        assert repository.find_by_order_id("o-2").token == access_token.token
        assert repository.find_by_token(access_token.token).order_id == "o-2"

    def test_earlier_order_still_found_after_upgrade(self, repository, db):
        access_token = repository.create(
            "novo@example.com", customer_name="Ana", order_id="o-1", expires_at=NOW
        )
        repository.upgrade_to_lifetime(access_token.token, order_id="o-2", customer_name="Ana")
        db.commit()

        assert repository.find_by_order_id("o-1").token == access_token.token

    def test_claiming_a_logged_order_twice_raises(self, repository, db):
        access_token = repository.create(
            "novo@example.com", customer_name="Ana", order_id="o-1", expires_at=NOW
        )
        repository.renew_temporary(
            access_token.token, expires_at=NOW, order_id="o-2", customer_name="Ana"
        )
        db.commit()

        # o-1 is no longer the row's latest order but is still claimed
        with pytest.raises(DuplicateError):
            repository.create("outro@example.com", customer_name="Bia", order_id="o-1")

    def test_refund_of_earlier_order_burns_renewed_row(self, repository, db):
        access_token = repository.create(
            "novo@example.com", customer_name="Ana", order_id="o-1", expires_at=NOW
        )
        repository.renew_temporary(
            access_token.token, expires_at=NOW, order_id="o-2", customer_name="Ana"
        )
        db.commit()

        assert repository.burn_by_order_id("o-1") == 1
