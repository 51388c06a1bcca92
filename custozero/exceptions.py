"""Domain exceptions for the access service.

Only failures are exceptions. A missing, used or expired token is a normal
result of the token state machine and is returned as a value.
"""


class AccessServiceError(Exception):
    """Base exception for access service failures."""


class ValidationError(AccessServiceError):
    """Request input has the wrong shape (HTTP 400)."""


class InvalidSignatureError(AccessServiceError):
    """Webhook signature does not match the shared secret (HTTP 401)."""


class ConflictError(AccessServiceError):
    """Another writer already stored a token for the same order."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Token for order {order_id} was created concurrently")


class TransientStoreError(AccessServiceError):
    """Token store is unreachable or rejected a write (HTTP 503, retry-safe)."""


class ConfigurationError(AccessServiceError):
    """Required configuration is missing."""


class EmailDeliveryError(AccessServiceError):
    """Best-effort email could not be delivered."""
