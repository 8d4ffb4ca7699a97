"""Order queries and the order update path.

An order may be edited (notes, shipping contact, line items) until it
reaches a terminal status (``DELIVERED`` or ``CANCELLED``).  Replacing the
items gives back the previous reservation, reserves the new quantities and
re-derives the totals with the discount stored on the order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import QuerySet

from modules.orders.exceptions import OrderNotEditable, OrderNotFound
from modules.orders.services.stock import release_lines, reserve_lines

if TYPE_CHECKING:
    from modules.orders.dtos import UpdateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for reading and editing orders."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Orden {order_id} no encontrada.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_order(self, order_id: UUID, dto: UpdateOrderDTO) -> Order:
        """Apply *dto* to a non-terminal order.

        Raises:
            OrderNotFound: the order does not exist.
            OrderNotEditable: the order is delivered or cancelled.
            ProductNotFound / ProductUnavailable / InsufficientStock: new items.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Orden {order_id} no encontrada.")
        if order.is_terminal:
            raise OrderNotEditable(
                f"No se puede modificar una orden en estado {order.status.name}."
            )

        log = logger.bind(order_id=str(order.id))
        changed = []

        if dto.notes is not None:
            order.notes = dto.notes
            changed.append("notes")
        for field, value in dto.shipping_changes().items():
            setattr(order, field, value)
            changed.append(field)
        if changed:
            order.save(update_fields=changed)

        if dto.items is not None:
            release_lines(self._product_repo, list(order.items.all()))
            lines = reserve_lines(self._product_repo, dto.items)
            self._order_repo.replace_items(order, lines)
            changed.append("items")

        log.info("order.updated", fields=changed)
        return self.get_order(str(order.id))
