"""Kiwify webhook signature verification."""

import hashlib
import hmac
import logging

from custozero.exceptions import InvalidSignatureError

logger = logging.getLogger(__name__)


class SignatureService:
    """HMAC-SHA256 check of raw webhook bodies."""

    @staticmethod
    def compute_signature(raw_body: bytes, secret: str) -> str:
        """Hex HMAC-SHA256 of the raw body."""
        return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()

    @classmethod
    def verify(cls, raw_body: bytes, signature: str | None, secret: str) -> None:
        """Raise InvalidSignatureError unless ``signature`` matches.

        Without a configured secret the check is skipped.
        """
        if not secret:
            logger.warning("Webhook secret not configured, skipping signature validation")
            return

        expected = cls.compute_signature(raw_body, secret)
        if not signature or not hmac.compare_digest(signature.lower(), expected):
            logger.error("Invalid webhook signature")
            raise InvalidSignatureError("Invalid signature")
