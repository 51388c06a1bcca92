"""Services layer - token lifecycle logic and external integrations.

- repositories/: Data access layer for access tokens
- shared/: Shared helpers (email normalization)
- webhook_payloads / webhook_service: payment events to tokens
- token_validator / token_poller: token checks for the frontend
- email_service / signature_service: SendGrid delivery and webhook HMAC

Common imports for convenience:
    from custozero.services import AccessTokenRepository
"""

# Re-export commonly used components for convenience
from custozero.services.repositories import (
    AccessTokenRepository,
    DuplicateError,
    RepositoryError,
)

__all__ = [
    "AccessTokenRepository",
    "DuplicateError",
    "RepositoryError",
]
