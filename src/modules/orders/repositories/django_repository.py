"""Django ORM implementation of the Order and OrderStatus repositories.

Satisfies ``IOrderRepository`` and ``IOrderStatusRepository`` using
Django's QuerySet API.  Write operations are wrapped in
``transaction.atomic()`` so the Order aggregate (Order + OrderItems +
derived totals) is persisted atomically.

Concurrency control on status changes uses ``select_for_update()``
(no ``version`` field exists on the model).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q, QuerySet

from modules.orders.models import Order, OrderItem, OrderStatus, OrderStatusHistory
from modules.orders.pricing import Discount
from modules.orders.repositories.interfaces import (
    IOrderRepository,
    IOrderStatusRepository,
)

logger = structlog.get_logger(__name__)

PRICING_FIELDS = [
    "subtotal",
    "tax_rate",
    "tax_amount",
    "discount_rate",
    "discount_amount",
    "total",
]


def _order_queryset() -> QuerySet:
    return Order.objects.select_related(
        "customer",
        "status",
        "payment_method",
        "delivery_method",
        "coupon",
    ).prefetch_related(
        "items__product",
        "status_history__old_status",
        "status_history__new_status",
    )


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        Totals are never taken from ``data``: they are derived from the
        persisted items and the ``discount`` input.
        """
        discount: Discount = data.get("discount") or Discount.none()
        order = Order(
            customer_id=data["customer_id"],
            status_id=data["status_id"],
            delivery_method_id=data.get("delivery_method_id"),
            coupon_id=data.get("coupon_id"),
            notes=data.get("notes", ""),
            discount_type=discount.type,
            discount_value=discount.value,
            **data.get("shipping", {}),
        )
        order.save()

        items = data.get("items", [])
        self._create_items(order, items)
        order.recalculate_totals()
        order.save(update_fields=PRICING_FIELDS)

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
            total=str(order.total),
        )
        return order

    @transaction.atomic
    def replace_items(self, order: Order, items: List[Dict[str, Any]]) -> Order:
        OrderItem.objects.filter(order_id=order.pk).delete()
        self._create_items(order, items)
        order.recalculate_totals()
        order.save(update_fields=PRICING_FIELDS)
        logger.info(
            "order.items_replaced",
            order_id=str(order.id),
            item_count=len(items),
            total=str(order.total),
        )
        return order

    @staticmethod
    def _create_items(order: Order, items: List[Dict[str, Any]]) -> None:
        for item_data in items:
            OrderItem(
                order=order,
                product_id=item_data["product_id"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
                tax_rate=item_data.get("tax_rate", 0),
            ).save()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return _order_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Lock the order row and load the relations the lifecycle needs.

        Items are not prefetched: callers that change them re-read the
        rows inside the same transaction.
        """
        try:
            return (
                Order.objects.select_for_update(of=("self",))
                .select_related(
                    "customer", "status", "payment_method", "delivery_method"
                )
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Orders with eager-loaded relations, newest first.

        Returns a QuerySet so the API layer can keep filtering and
        paginating it.
        """
        queryset = _order_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info("order.saved", order_id=str(entity.id))
        return entity

    def delete(self, id: str) -> bool:
        """Orders are never deleted; they are moved to a cancelled status."""
        logger.warning("order.delete_refused", order_id=str(id))
        return False

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(
        self,
        order: Order,
        new_status: OrderStatus,
        old_status: Optional[OrderStatus] = None,
        notes: str = "",
        user: Any = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order=order,
            old_status=old_status,
            new_status=new_status,
            notes=notes or "",
            user=user if getattr(user, "is_authenticated", False) else None,
        )
        logger.info(
            "order.history_added",
            order_id=str(order.id),
            old_status=old_status.code if old_status else None,
            new_status=new_status.code,
        )
        return history


class OrderStatusDjangoRepository(IOrderStatusRepository):
    """Concrete OrderStatus repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[OrderStatus]:
        try:
            return (
                OrderStatus.objects.prefetch_related("can_transition_to")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_code(self, code: str) -> Optional[OrderStatus]:
        return (
            OrderStatus.objects.prefetch_related("can_transition_to")
            .filter(code=code.strip().upper())
            .first()
        )

    def get_default(self) -> Optional[OrderStatus]:
        return OrderStatus.objects.filter(is_default=True).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = OrderStatus.objects.prefetch_related("can_transition_to")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def code_exists(self, code: str, exclude_id: Optional[UUID] = None) -> bool:
        queryset = OrderStatus.objects.filter(code=code.strip().upper())
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.exists()

    def is_in_use(self, id: UUID) -> bool:
        if Order.objects.filter(status_id=id).exists():
            return True
        return OrderStatusHistory.objects.filter(
            Q(old_status_id=id) | Q(new_status_id=id)
        ).exists()

    def is_transition_target(self, id: UUID) -> bool:
        return OrderStatus.objects.filter(can_transition_to__id=id).exists()

    @transaction.atomic
    def save(self, entity: OrderStatus) -> OrderStatus:
        is_new = entity._state.adding
        entity.save()
        logger.info(
            "order_status.saved",
            status_id=str(entity.id),
            code=entity.code,
            is_new=is_new,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        deleted, _ = OrderStatus.objects.filter(id=id).delete()
        if deleted:
            logger.info("order_status.deleted", status_id=str(id))
        return bool(deleted)

    def set_transitions(self, status: OrderStatus, target_ids: Iterable[UUID]) -> None:
        target_ids = list(target_ids)
        status.can_transition_to.set(target_ids)
        logger.info(
            "order_status.transitions_set",
            status_id=str(status.id),
            code=status.code,
            target_count=len(target_ids),
        )

    @transaction.atomic
    def set_default(self, id: UUID) -> Optional[OrderStatus]:
        status = OrderStatus.objects.select_for_update().filter(id=id).first()
        if not status:
            return None
        status.mark_as_default()
        return status
