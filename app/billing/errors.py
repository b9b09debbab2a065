"""Billing error taxonomy.

Every failure in the checkout/reconciliation flow is a ``BillingError``. The
API layer converts them into a uniform ``{"error": message}`` body with
HTTP 400 (see ``app.api.errors``).
"""


class BillingError(Exception):
    """Base class for errors raised by the payment flow."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(BillingError):
    """The caller presented no identity token, or an invalid one."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ConfigurationError(BillingError):
    """The gateway credential is missing from the deployment configuration."""

    def __init__(self, message: str = "Mercado Pago access token not configured") -> None:
        super().__init__(message)


class GatewayError(BillingError):
    """The payment gateway answered non-2xx, or with a malformed body."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PersistenceError(BillingError):
    """Writing the subscription record failed."""


class ValidationError(BillingError):
    """Malformed request data or correlation reference."""
