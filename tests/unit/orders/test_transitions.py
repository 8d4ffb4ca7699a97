"""Unit tests for OrderStatusTransitionService.

Covers:
- Graph enforcement (allowed, refused, open statuses).
- Inactive and unchanged targets.
- History records with notes and user.
- Stock release on cancellation and re-reservation on reopening.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.exceptions import (
    InactiveOrderStatus,
    OrderNotFound,
    OrderStatusNotFound,
    StatusUnchanged,
    TransitionNotAllowed,
)
from modules.orders.models import Order, OrderStatusHistory
from modules.products.exceptions import InsufficientStock
from shared.domain.errors import ErrorKind, InvalidTransition

pytestmark = pytest.mark.unit


def move_to(order: Order, status) -> Order:
    """Put *order* directly in *status*, bypassing the graph."""
    Order.objects.filter(pk=order.pk).update(status=status)
    return Order.objects.get(pk=order.pk)


class TestChangeStatus:
    def test_allowed_transition(
        self, transition_service, statuses, place_order, product
    ):
        order = place_order((product, 1))
        updated = transition_service.change_status(
            order.id, statuses["CONFIRMED"].id, notes="Cliente confirmó"
        )
        assert updated.status.code == "CONFIRMED"

        history = OrderStatusHistory.objects.filter(order=order).first()
        assert history.old_status.code == "PENDING"
        assert history.new_status.code == "CONFIRMED"
        assert history.notes == "Cliente confirmó"

    def test_shipped_to_cancelled_is_refused(
        self, transition_service, statuses, place_order, product
    ):
        order = move_to(place_order((product, 1)), statuses["SHIPPED"])

        with pytest.raises(TransitionNotAllowed) as exc_info:
            transition_service.change_status(order.id, statuses["CANCELLED"].id)

        assert isinstance(exc_info.value, InvalidTransition)
        assert exc_info.value.kind == ErrorKind.INVALID_TRANSITION
        order.refresh_from_db()
        assert order.status.code == "SHIPPED"

    def test_same_status_is_refused(
        self, transition_service, statuses, place_order, product
    ):
        order = place_order((product, 1))
        with pytest.raises(StatusUnchanged):
            transition_service.change_status(order.id, statuses["PENDING"].id)

    def test_inactive_target(self, transition_service, statuses, place_order, product):
        order = place_order((product, 1))
        confirmed = statuses["CONFIRMED"]
        confirmed.is_active = False
        confirmed.save()
        with pytest.raises(InactiveOrderStatus):
            transition_service.change_status(order.id, confirmed.id)

    def test_unknown_order(self, transition_service, statuses):
        with pytest.raises(OrderNotFound):
            transition_service.change_status(uuid4(), statuses["CONFIRMED"].id)

    def test_unknown_status(self, transition_service, statuses, place_order, product):
        order = place_order((product, 1))
        with pytest.raises(OrderStatusNotFound):
            transition_service.change_status(order.id, uuid4())

    def test_by_code(self, transition_service, statuses, place_order, product):
        order = place_order((product, 1))
        updated = transition_service.change_status_by_code(order.id, "awaiting_payment")
        assert updated.status.code == "AWAITING_PAYMENT"

    def test_records_staff_user(
        self, transition_service, statuses, place_order, product, staff_user
    ):
        order = place_order((product, 1))
        transition_service.change_status(
            order.id, statuses["CONFIRMED"].id, user=staff_user
        )
        history = OrderStatusHistory.objects.filter(order=order).first()
        assert history.user == staff_user


class TestCancellationStock:
    def test_cancel_releases_stock(
        self, transition_service, statuses, place_order, product
    ):
        order = place_order((product, 3))
        product.refresh_from_db()
        assert product.stock_quantity == 7

        cancelled = transition_service.cancel_order(order.id)

        product.refresh_from_db()
        assert cancelled.status.code == "CANCELLED"
        assert product.stock_quantity == 10
        history = OrderStatusHistory.objects.filter(order=order).first()
        assert history.notes == "Orden cancelada"

    def test_reopening_reserves_stock_again(
        self, transition_service, statuses, place_order, product
    ):
        order = place_order((product, 4))
        transition_service.cancel_order(order.id)

        transition_service.change_status_by_code(order.id, "PENDING")

        product.refresh_from_db()
        assert product.stock_quantity == 6

    def test_reopening_without_stock_fails(
        self, transition_service, statuses, place_order, product
    ):
        order = place_order((product, 4))
        transition_service.cancel_order(order.id)
        product.stock_quantity = 1
        product.save()

        with pytest.raises(InsufficientStock):
            transition_service.change_status_by_code(order.id, "PENDING")

        order.refresh_from_db()
        assert order.status.code == "CANCELLED"

    def test_cancel_shipped_order_is_refused(
        self, transition_service, statuses, place_order, product
    ):
        order = move_to(place_order((product, 2)), statuses["SHIPPED"])
        with pytest.raises(TransitionNotAllowed):
            transition_service.cancel_order(order.id)
        product.refresh_from_db()
        assert product.stock_quantity == 8
