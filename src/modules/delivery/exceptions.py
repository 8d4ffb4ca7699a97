"""Delivery method exceptions."""

from __future__ import annotations

from shared.domain.errors import InvalidState, NotFound


class DeliveryMethodNotFound(NotFound):
    """The chosen delivery method does not exist."""


class DeliveryMethodInactive(InvalidState):
    """The chosen delivery method is disabled."""
