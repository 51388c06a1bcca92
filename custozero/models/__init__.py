"""SQLAlchemy ORM models."""

from custozero.models.access_token import AccessToken
from custozero.models.access_token_order import AccessTokenOrder

__all__ = [
    "AccessToken",
    "AccessTokenOrder",
]
