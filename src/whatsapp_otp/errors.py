"""Error taxonomy for OTP issuance.

Every failure a request can hit is an ``OTPServiceError``.  The HTTP layer
maps the families to status codes:

* ``ValidationError`` (and ``ConsentError``) → 400
* ``RateLimitError`` → 429
* everything else → 500
"""

from __future__ import annotations


class OTPServiceError(Exception):
    """Base class; ``message`` is safe to show to the caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(OTPServiceError):
    """Missing or malformed input; the user can correct it."""


class ConsentError(ValidationError):
    """The user has not accepted the terms."""


class RateLimitError(OTPServiceError):
    """Too many issuance requests for one phone inside the window."""


# ── Delivery gateway failures ────────────────────────────


class DeliveryError(OTPServiceError):
    """The messaging provider failed to accept the OTP message."""


class DeliveryConfigError(DeliveryError):
    """Provider credentials or template are not configured."""


class DeliveryAuthError(DeliveryError):
    """The provider rejected our API key."""


class DeliveryBadRequestError(DeliveryError):
    """The provider rejected the request parameters."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Bad request: {detail}")
        self.detail = detail


class ProviderRateLimitError(DeliveryError):
    """The provider throttled us."""


class NoResponseError(DeliveryError):
    """Network failure or timeout talking to the provider."""


class UnexpectedResponseError(DeliveryError):
    """The provider answered, but not with an accepted status."""

    def __init__(self, raw: object) -> None:
        super().__init__(f"Unexpected Gupshup response: {raw!r}")
        self.raw = raw


# ── Persistence ──────────────────────────────────────────


class PersistenceError(OTPServiceError):
    """Writing the consent record failed."""
