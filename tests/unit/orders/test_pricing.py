"""Unit tests for the pricing calculator (no database access)."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.exceptions import InvalidPricingInput
from modules.orders.pricing import (
    Discount,
    PricingLine,
    compute_totals,
    format_amount,
    to_money,
)

pytestmark = pytest.mark.unit


def line(quantity, unit_price, tax_rate="0"):
    return PricingLine(
        quantity=quantity,
        unit_price=Decimal(str(unit_price)),
        tax_rate=Decimal(str(tax_rate)),
    )


class TestSubtotalAndTotal:
    def test_subtotal_is_sum_of_lines(self):
        result = compute_totals([line(2, "10.00"), line(1, "5.50")])
        assert result.subtotal == Decimal("25.50")
        assert result.total == Decimal("25.50")
        assert result.discount_amount == Decimal("0.00")

    def test_percentage_discount(self):
        result = compute_totals([line(1, "200.00")], Discount.rate(10))
        assert result.discount_amount == Decimal("20.00")
        assert result.discount_rate == Decimal("10.00")
        assert result.total == Decimal("180.00")

    def test_fixed_discount_is_capped_at_subtotal(self):
        result = compute_totals([line(1, "50.00")], Discount.fixed(80))
        assert result.discount_amount == Decimal("50.00")
        assert result.discount_rate == Decimal("100.00")
        assert result.total == Decimal("0.00")

    def test_fixed_discount_reports_equivalent_rate(self):
        result = compute_totals([line(4, "50.00")], Discount.fixed(50))
        assert result.discount_rate == Decimal("25.00")
        assert result.total == Decimal("150.00")

    def test_full_discount_gives_zero_total(self):
        result = compute_totals([line(3, "9.99")], Discount.rate(100))
        assert result.total == Decimal("0.00")

    def test_rounds_half_up(self):
        result = compute_totals([line(1, "0.05")], Discount.rate(50))
        # 0.025 rounds up to 0.03
        assert result.discount_amount == Decimal("0.03")
        assert result.total == Decimal("0.02")

    def test_is_deterministic(self):
        lines = [line(3, "33.33", "21"), line(1, "0.01", "10.5")]
        assert compute_totals(lines, Discount.rate(7)) == compute_totals(
            lines, Discount.rate(7)
        )


class TestIncludedTax:
    def test_tax_is_contained_in_the_price(self):
        result = compute_totals([line(1, "121.00", "21")])
        assert result.subtotal == Decimal("121.00")
        assert result.tax_amount == Decimal("21.00")
        assert result.tax_rate == Decimal("21.00")

    def test_mixed_rates_report_effective_rate(self):
        result = compute_totals([line(1, "121.00", "21"), line(1, "100.00", "0")])
        assert result.tax_amount == Decimal("21.00")
        assert result.tax_rate == Decimal("10.50")

    def test_no_lines_price_to_zero(self):
        result = compute_totals([])
        assert result.subtotal == Decimal("0.00")
        assert result.tax_rate == Decimal("0.00")
        assert result.total == Decimal("0.00")


class TestInvalidInput:
    def test_zero_quantity_rejected(self):
        with pytest.raises(InvalidPricingInput):
            compute_totals([line(0, "10.00")])

    def test_negative_price_rejected(self):
        with pytest.raises(InvalidPricingInput):
            compute_totals([line(1, "-1.00")])

    def test_rate_above_hundred_rejected(self):
        with pytest.raises(InvalidPricingInput, match="entre 0 y 100"):
            Discount.rate(101)

    def test_negative_discount_rejected(self):
        with pytest.raises(InvalidPricingInput):
            Discount.fixed(-5)


class TestFormatting:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(100, "100"), (Decimal("99.5"), "99.50"), (Decimal("100.00"), "100")],
    )
    def test_format_amount(self, value, expected):
        assert format_amount(value) == expected

    def test_to_money(self):
        assert to_money("1.005") == Decimal("1.01")
