"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Each class
subclasses a kind from ``shared.domain.errors``; the API boundary maps kinds
to HTTP responses.
"""

from __future__ import annotations

from shared.domain.errors import (
    InternalError,
    InvalidInput,
    InvalidState,
    InvalidTransition,
    NotFound,
)

# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderNotFound(NotFound):
    """The requested order does not exist."""


class OrderNotEditable(InvalidState):
    """The order is in a terminal status and cannot be modified."""


class OrderCreationFailed(InternalError):
    """Unexpected failure while creating an order (wraps the cause)."""


class InvalidPricingInput(InvalidInput):
    """Quantities, prices or discounts outside their allowed range."""


class InvalidOrderData(InvalidInput):
    """Order request fields are missing or contradictory."""


# ---------------------------------------------------------------------------
# Order statuses
# ---------------------------------------------------------------------------


class OrderStatusNotFound(NotFound):
    """The referenced order status does not exist."""


class OrderStatusAlreadyExists(InvalidState):
    """Another status already uses the same code."""


class OrderStatusInUse(InvalidState):
    """The status is referenced by orders (or is the default) and cannot be deleted."""


class InactiveOrderStatus(InvalidState):
    """The target status is disabled."""


class StatusUnchanged(InvalidState):
    """The order already has the requested status."""


class TransitionNotAllowed(InvalidTransition):
    """The status graph does not allow the requested move."""


class InvalidStatusTransitions(InvalidInput):
    """A transition list references unknown statuses or the status itself."""


class DefaultStatusMissing(InternalError):
    """No default order status is configured."""


# ---------------------------------------------------------------------------
# Payment selection
# ---------------------------------------------------------------------------


class PaymentNotAllowed(InvalidState):
    """The order cannot take a payment method in its current state."""


class PaymentMethodNotEligible(InvalidState):
    """Method-specific guard failed (cash ceiling, gateway minimum)."""
