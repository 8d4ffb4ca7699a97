"""Coupon ledger interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.coupons.models import Coupon


class ICouponRepository(IRepository["Coupon"]):
    """Repository contract for coupons."""

    @abstractmethod
    def get_by_code(self, code: str) -> Optional[Coupon]:
        """Retrieve a coupon by its (case-insensitive) code."""

    @abstractmethod
    def increment_usage(self, coupon_id: Any) -> bool:
        """Add one use to the coupon unless its usage limit is reached.

        Returns ``False`` when the limit was already exhausted.
        """
