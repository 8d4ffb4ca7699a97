"""Order status transitions.

Every status change goes through ``OrderStatusTransitionService``,
whoever triggers it: a staff edit, a payment method selection or a
payment gateway confirmation.  The steps are:

1. lock the order (``SELECT FOR UPDATE``);
2. load the target status (must exist and be active);
3. reject a move to the status the order already has;
4. consult the status graph;
5. persist the new status (and payment method, if any) in one save and
   append a history record.

Moving to ``CANCELLED`` gives the reserved stock back; leaving it
reserves the stock again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

import structlog
from django.db import transaction

from modules.orders.constants import StatusCode
from modules.orders.exceptions import (
    InactiveOrderStatus,
    OrderNotFound,
    OrderStatusNotFound,
    StatusUnchanged,
    TransitionNotAllowed,
)
from modules.orders.services.status_graph import OrderStatusGraph
from modules.orders.services.stock import release_lines, reserve_lines

if TYPE_CHECKING:
    from uuid import UUID

    from modules.orders.models import Order, OrderStatus
    from modules.orders.repositories.interfaces import (
        IOrderRepository,
        IOrderStatusRepository,
    )
    from modules.payments.models import PaymentMethod
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderStatusTransitionService:
    """Single entry point for changing an order's status."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        status_repository: IOrderStatusRepository,
        product_repository: IProductRepository,
        graph: Optional[OrderStatusGraph] = None,
    ) -> None:
        self._order_repo = order_repository
        self._status_repo = status_repository
        self._product_repo = product_repository
        self._graph = graph or OrderStatusGraph(status_repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def change_status(
        self,
        order_id: UUID,
        new_status_id: UUID,
        notes: str = "",
        user: Any = None,
    ) -> Order:
        """Move an order to *new_status_id*.

        Raises:
            OrderNotFound: the order does not exist.
            OrderStatusNotFound: the target status does not exist.
            InactiveOrderStatus: the target status is disabled.
            StatusUnchanged: the order already has that status.
            TransitionNotAllowed: the status graph forbids the move.
        """
        order = self.lock_order(order_id)
        target = self._status_repo.get_by_id(str(new_status_id))
        if not target:
            raise OrderStatusNotFound(
                f"Estado {new_status_id} no encontrado.", attr="status_id"
            )
        return self.apply_transition(order, target, notes=notes, user=user)

    @transaction.atomic
    def change_status_by_code(
        self,
        order_id: UUID,
        status_code: str,
        notes: str = "",
        user: Any = None,
    ) -> Order:
        order = self.lock_order(order_id)
        target = self._status_repo.get_by_code(status_code)
        if not target:
            raise OrderStatusNotFound(
                f"Estado {status_code.strip().upper()} no encontrado.",
                attr="status_code",
            )
        return self.apply_transition(order, target, notes=notes, user=user)

    def cancel_order(self, order_id: UUID, notes: str = "", user: Any = None) -> Order:
        """Cancel an order; its stock is released by the transition."""
        return self.change_status_by_code(
            order_id,
            StatusCode.CANCELLED,
            notes=notes or "Orden cancelada",
            user=user,
        )

    def lock_order(self, order_id: UUID) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Orden {order_id} no encontrada.")
        return order

    @transaction.atomic
    def apply_transition(
        self,
        order: Order,
        target: OrderStatus,
        notes: str = "",
        payment_method: Optional[PaymentMethod] = None,
        allow_same_status: bool = False,
        user: Any = None,
    ) -> Order:
        """Validate and persist a move of a locked *order* to *target*.

        With ``allow_same_status`` a move to the current status only
        records the payment method and a history entry.
        """
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status.code,
            new_status=target.code,
        )

        if not target.is_active:
            raise InactiveOrderStatus(
                f"El estado '{target.name}' no está activo.", attr="status_id"
            )

        same_status = order.status_id == target.id
        if same_status and not allow_same_status:
            raise StatusUnchanged(f"La orden ya está en estado {target.name}.")
        if not same_status and not self._graph.is_transition_allowed(
            order.status_id, target.id
        ):
            log.warning("order.invalid_transition")
            raise TransitionNotAllowed(
                f"No se puede cambiar el estado de {order.status.name} "
                f"a {target.name}."
            )

        old_status = order.status
        self._move_stock(order, old_status, target)

        order.status = target
        if payment_method is not None:
            order.payment_method = payment_method
        self._order_repo.save(order)
        self._order_repo.add_history(
            order, target, old_status=old_status, notes=notes, user=user
        )

        log.info(
            "order.status_changed",
            payment_method=payment_method.code if payment_method else None,
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _move_stock(self, order: Order, old: OrderStatus, new: OrderStatus) -> None:
        cancelling = new.code == StatusCode.CANCELLED
        reopening = old.code == StatusCode.CANCELLED
        if cancelling == reopening:
            return

        items = list(order.items.all())
        if cancelling:
            release_lines(self._product_repo, items)
            logger.info("order.stock_released", order_id=str(order.id))
        else:
            reserve_lines(self._product_repo, items)
            logger.info("order.stock_reserved", order_id=str(order.id))
