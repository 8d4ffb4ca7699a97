"""Unit tests for the order update path (OrderService.update_order)."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.dtos import UpdateOrderDTO
from modules.orders.exceptions import OrderNotEditable, OrderNotFound
from modules.orders.models import Order
from modules.products.exceptions import InsufficientStock

pytestmark = pytest.mark.unit


def line(product, quantity):
    return {
        "product_id": product.id,
        "quantity": quantity,
        "unit_price": product.price_with_tax,
    }


class TestUpdateOrder:
    def test_updates_notes(self, order_service, statuses, place_order, product):
        order = place_order((product, 1))
        updated = order_service.update_order(
            order.id, UpdateOrderDTO(notes="Timbre 2B")
        )
        assert updated.notes == "Timbre 2B"

    def test_updates_shipping_contact(
        self,
        order_service,
        statuses,
        place_order,
        product,
        home_delivery,
        neighborhood,
    ):
        order = place_order(
            (product, 1),
            delivery_method_id=home_delivery.id,
            shipping_recipient_name="Ana",
            shipping_phone="3415550000",
            shipping_street_address="Mitre 1",
            shipping_neighborhood_id=neighborhood.id,
        )
        updated = order_service.update_order(
            order.id,
            UpdateOrderDTO(shipping_phone="3415559999", shipping_additional_info="PB"),
        )
        assert updated.shipping_phone == "3415559999"
        assert updated.shipping_additional_info == "PB"
        assert updated.shipping_street_address == "Mitre 1"

    def test_replacing_items_moves_stock_and_totals(
        self, order_service, statuses, place_order, product, cheap_product
    ):
        order = place_order((product, 2), discount_rate=Decimal("50"))

        updated = order_service.update_order(
            order.id, UpdateOrderDTO(items=[line(product, 1), line(cheap_product, 5)])
        )

        product.refresh_from_db()
        cheap_product.refresh_from_db()
        assert product.stock_quantity == 9
        assert cheap_product.stock_quantity == 95
        assert updated.subtotal == Decimal("1310.00")
        assert updated.discount_amount == Decimal("655.00")
        assert updated.total == Decimal("655.00")
        assert sorted(item.quantity for item in updated.items.all()) == [1, 5]

    def test_failed_item_change_keeps_previous_items(
        self, order_service, statuses, place_order, product
    ):
        order = place_order((product, 2))

        with pytest.raises(InsufficientStock):
            order_service.update_order(
                order.id, UpdateOrderDTO(items=[line(product, 50)])
            )

        product.refresh_from_db()
        assert product.stock_quantity == 8
        assert Order.objects.get(pk=order.pk).items.get().quantity == 2

    @pytest.mark.parametrize("code", ["DELIVERED", "CANCELLED"])
    def test_terminal_orders_are_frozen(
        self, order_service, statuses, place_order, product, code
    ):
        order = place_order((product, 1))
        Order.objects.filter(pk=order.pk).update(status=statuses[code])

        with pytest.raises(OrderNotEditable):
            order_service.update_order(order.id, UpdateOrderDTO(notes="tarde"))

    def test_unknown_order(self, order_service, statuses):
        with pytest.raises(OrderNotFound):
            order_service.update_order(uuid4(), UpdateOrderDTO(notes="x"))
