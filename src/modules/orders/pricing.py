"""Order pricing calculator.

Pure and deterministic: no ORM access, no I/O.  Unit prices are
tax-inclusive, so the tax amount is the share of VAT already contained in
the subtotal (``gross - gross / (1 + rate / 100)``), not an extra charge.

Rules:
- ``subtotal = sum(quantity * unit_price)``.
- A discount is either a percentage of the subtotal (0 to 100) or a fixed
  amount; it never exceeds the subtotal.
- ``total = max(0, subtotal - discount_amount)``.
- Every monetary result is rounded half-up to 2 decimal places.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Protocol

from modules.coupons.constants import DiscountType
from modules.orders.exceptions import InvalidPricingInput

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_money(value: Any) -> Decimal:
    """Round *value* half-up to currency precision."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_amount(value: Any) -> str:
    """Render an amount for messages: ``100`` stays ``100``, ``99.5`` is ``99.50``."""
    value = Decimal(str(value))
    if value == value.to_integral_value():
        return str(int(value))
    return f"{value:.2f}"


class PricedLine(Protocol):
    quantity: int
    unit_price: Any
    tax_rate: Any


@dataclass(frozen=True)
class PricingLine:
    """A line to price before it exists as an ``OrderItem``."""

    quantity: int
    unit_price: Decimal
    tax_rate: Decimal = ZERO


@dataclass(frozen=True)
class Discount:
    """Discount to apply on the subtotal.

    ``Discount.rate(10)`` takes 10 % off; ``Discount.fixed(500)`` takes
    500 off (capped at the subtotal).  ``Discount.none()`` is a 0 % rate.
    """

    type: str = DiscountType.PERCENTAGE
    value: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.type not in DiscountType.values:
            raise InvalidPricingInput(f"Tipo de descuento desconocido: {self.type}.")
        value = Decimal(str(self.value))
        if value < 0:
            raise InvalidPricingInput("El descuento no puede ser negativo.")
        if self.type == DiscountType.PERCENTAGE and value > HUNDRED:
            raise InvalidPricingInput("La tasa de descuento debe estar entre 0 y 100.")
        object.__setattr__(self, "value", value)

    @classmethod
    def none(cls) -> Discount:
        return cls()

    @classmethod
    def rate(cls, value: Any) -> Discount:
        return cls(DiscountType.PERCENTAGE, value)

    @classmethod
    def fixed(cls, amount: Any) -> Discount:
        return cls(DiscountType.FIXED, amount)

    def amount_for(self, subtotal: Decimal) -> Decimal:
        if self.type == DiscountType.PERCENTAGE:
            amount = to_money(subtotal * self.value / HUNDRED)
        else:
            amount = to_money(self.value)
        return max(ZERO, min(amount, subtotal))

    def rate_for(self, subtotal: Decimal) -> Decimal:
        """Equivalent percentage of *subtotal* (fixed amounts capped at 100)."""
        if self.type == DiscountType.PERCENTAGE:
            return to_money(self.value)
        if subtotal <= 0:
            return ZERO
        return to_money(min(self.value / subtotal * HUNDRED, HUNDRED))


@dataclass(frozen=True)
class PricingResult:
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_rate: Decimal
    discount_amount: Decimal
    total: Decimal


def line_subtotal(line: PricedLine) -> Decimal:
    _check_line(line)
    return to_money(Decimal(line.quantity) * Decimal(str(line.unit_price)))


def _check_line(line: PricedLine) -> None:
    if line.quantity is None or int(line.quantity) < 1:
        raise InvalidPricingInput("La cantidad debe ser al menos 1.")
    if Decimal(str(line.unit_price)) < 0:
        raise InvalidPricingInput("El precio unitario no puede ser negativo.")
    tax_rate = Decimal(str(line.tax_rate or 0))
    if tax_rate < 0 or tax_rate > HUNDRED:
        raise InvalidPricingInput("La alícuota de IVA debe estar entre 0 y 100.")


def _included_tax(gross: Decimal, tax_rate: Decimal) -> Decimal:
    if tax_rate <= 0:
        return Decimal("0")
    return gross - gross / (1 + tax_rate / HUNDRED)


def compute_totals(
    lines: Iterable[PricedLine], discount: Discount | None = None
) -> PricingResult:
    """Price an order from its lines and an optional discount."""
    discount = discount or Discount.none()
    lines = list(lines)

    subtotal = ZERO
    raw_tax = Decimal("0")
    rates: set[Decimal] = set()
    for line in lines:
        gross = line_subtotal(line)
        rate = Decimal(str(line.tax_rate or 0))
        subtotal += gross
        raw_tax += _included_tax(gross, rate)
        rates.add(rate)

    subtotal = to_money(subtotal)
    tax_amount = to_money(raw_tax)
    if len(rates) == 1:
        tax_rate = to_money(rates.pop())
    elif subtotal - tax_amount > 0:
        tax_rate = to_money(tax_amount / (subtotal - tax_amount) * HUNDRED)
    else:
        tax_rate = ZERO

    discount_amount = discount.amount_for(subtotal)
    total = max(ZERO, to_money(subtotal - discount_amount))

    return PricingResult(
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        discount_rate=discount.rate_for(subtotal),
        discount_amount=discount_amount,
        total=total,
    )
