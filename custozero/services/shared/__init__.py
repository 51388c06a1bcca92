"""Shared helpers for the services layer."""

from .email_address import EMAIL_PATTERN, normalize_email, require_valid_email

__all__ = ["EMAIL_PATTERN", "normalize_email", "require_valid_email"]
