"""Tests for application settings."""

from custozero.config import Settings


def test_defaults_match_pricing_and_pass_windows():
    defaults = Settings(_env_file=None)
    assert defaults.pass_duration_hours == 24
    assert defaults.kiwify_pass_duration_days == 30
    assert defaults.price_reactivation_cents == 790
    assert defaults.price_lifetime_cents == 4700
    assert defaults.revoke_on_refund is False
    assert defaults.poll_rate_limit == "60/minute"


def test_only_settings_the_service_reads_are_declared():
    assert "debug" not in Settings.model_fields
