"""Payment method catalog interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.payments.models import PaymentMethod


class IPaymentMethodRepository(IRepository["PaymentMethod"]):
    """Repository contract for payment methods."""

    @abstractmethod
    def get_by_code(self, code: str) -> Optional[PaymentMethod]:
        """Retrieve a payment method by (case-insensitive) code."""
