"""Application constants to avoid magic strings."""


class OrderEvent:
    """Canonical payment events after provider normalization."""

    PAID = "order.paid"
    REFUNDED = "order.refunded"
    CANCELLED = "order.cancelled"
    UNKNOWN = "unknown"


class Provider:
    """Payment providers that deliver webhooks."""

    KIWIFY = "kiwify"
    CAKTO = "cakto"
    LEGACY = "legacy"


class PurchaseTier:
    """Purchase classification by paid amount."""

    LIFETIME = "lifetime"
    REACTIVATION = "reactivation"
    STANDARD = "standard"


class InvalidReason:
    """Reasons a token fails validation."""

    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"


class PollOutcome:
    """Outcomes of an email-to-token lookup."""

    ACTIVE = "active"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    NOT_FOUND = "not_found"


class PollMessage:
    """User-facing poll messages (pt-BR)."""

    LIFETIME_ACTIVE = "Acesso vitalício ativo!"
    TOKEN_FOUND = "Token encontrado com sucesso"
    PASS_EXPIRED = "Seu passe livre expirou. Renove seu acesso por apenas R$ 7,90!"
    PASS_USED = "Seu passe livre já foi utilizado. Renove seu acesso por apenas R$ 7,90!"
    EMAIL_NOT_FOUND = "Email não encontrado em nossa base de dados."


DEFAULT_CUSTOMER_NAME = "Cliente"
