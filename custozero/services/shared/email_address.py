"""Customer email normalization."""

import re

from custozero.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> str:
    """Lowercase and trim an email so every lookup uses the stored form."""
    return email.strip().lower()


def require_valid_email(email: object) -> str:
    """Return the normalized email or raise ValidationError."""
    if not email or not isinstance(email, str):
        raise ValidationError("Email é obrigatório")
    normalized = normalize_email(email)
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationError("Email inválido")
    return normalized
