"""Product catalog exceptions raised while validating order lines."""

from __future__ import annotations

from shared.domain.errors import InvalidState, NotFound


class ProductNotFound(NotFound):
    """A product referenced by an order line does not exist."""


class ProductUnavailable(InvalidState):
    """The product exists but is inactive."""


class InsufficientStock(InvalidState):
    """Not enough stock to fulfil an order line."""
