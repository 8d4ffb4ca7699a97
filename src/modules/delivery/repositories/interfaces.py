"""Delivery method catalog interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.delivery.models import DeliveryMethod


class IDeliveryMethodRepository(IRepository["DeliveryMethod"]):
    """Repository contract for delivery methods."""

    @abstractmethod
    def get_by_code(self, code: str) -> Optional[DeliveryMethod]:
        """Retrieve a delivery method by code."""
