"""Payment method exceptions."""

from __future__ import annotations

from shared.domain.errors import InvalidState, NotFound, Unauthorized


class PaymentMethodNotFound(NotFound):
    """No payment method has the requested code."""


class PaymentMethodInactive(InvalidState):
    """The payment method exists but is disabled."""


class InvalidWebhookSignature(Unauthorized):
    """The webhook call is unsigned or signed with another secret."""


class PaymentNotExpected(InvalidState):
    """The order is not waiting for a gateway payment."""
