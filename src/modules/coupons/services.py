"""Coupon validation for checkout.

``CouponValidator.validate`` answers one question: can this code be used
for these items right now, and what discount does it grant?  It does not
touch the usage counter; the order repository increments it in the same
transaction that persists the order.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Protocol
from uuid import UUID

import structlog

from modules.coupons.constants import DiscountType
from modules.coupons.exceptions import CouponNotApplicable, InvalidCoupon
from modules.orders.pricing import Discount, format_amount, to_money
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.coupons.models import Coupon
    from modules.coupons.repositories.interfaces import ICouponRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CouponLine(Protocol):
    product_id: UUID
    quantity: int


@dataclass(frozen=True)
class CouponApplication:
    coupon: Coupon
    discount: Discount


class CouponValidator:
    """Resolve a coupon code into a ``Discount`` for a set of order lines."""

    def __init__(
        self,
        coupon_repository: ICouponRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._coupon_repo = coupon_repository
        self._product_repo = product_repository

    def validate(self, code: str, lines: Iterable[CouponLine]) -> CouponApplication:
        """Validate *code* against *lines*.

        Raises:
            InvalidCoupon: the code does not exist.
            CouponNotApplicable: inactive, outside its window, exhausted,
                or the base-price subtotal is below the minimum purchase.
            ProductNotFound: a line references a product that no longer exists.
        """
        normalized = code.strip().upper()
        log = logger.bind(coupon_code=normalized)

        coupon = self._coupon_repo.get_by_code(normalized)
        if not coupon:
            log.info("coupon.invalid")
            raise InvalidCoupon(f"Cupón '{normalized}' inválido.", attr="coupon_code")

        if not coupon.is_valid_now or coupon.is_usage_limit_reached:
            log.info(
                "coupon.not_applicable",
                is_valid_now=coupon.is_valid_now,
                times_used=coupon.times_used,
                usage_limit=coupon.usage_limit,
            )
            raise CouponNotApplicable(
                f"Cupón '{normalized}' no aplicable.", attr="coupon_code"
            )

        base_subtotal = Decimal("0")
        for line in lines:
            product = self._product_repo.get_by_id(str(line.product_id))
            if not product:
                raise ProductNotFound(
                    f"Producto {line.product_id} no encontrado al validar el cupón."
                )
            base_subtotal += Decimal(product.price) * line.quantity

        minimum = coupon.min_purchase_amount
        if minimum is not None and to_money(base_subtotal) < minimum:
            raise CouponNotApplicable(
                f"Compra mínima ${format_amount(minimum)} (s/IVA) "
                f"para cupón '{normalized}'.",
                attr="coupon_code",
            )

        if coupon.discount_type == DiscountType.FIXED:
            discount = Discount.fixed(coupon.discount_value)
        else:
            discount = Discount.rate(coupon.discount_value)

        log.info(
            "coupon.validated",
            discount_type=discount.type,
            value=str(discount.value),
        )
        return CouponApplication(coupon=coupon, discount=discount)
