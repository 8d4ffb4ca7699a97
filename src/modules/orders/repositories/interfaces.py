"""Order and OrderStatus repository interfaces.

Extend ``IRepository[T]`` with the methods the order lifecycle needs:
atomic creation of the Order aggregate with its items, row locks for
status changes, history tracking, and the status graph primitives
(default lookup, code lookup, transition replacement).

The Service Layer depends exclusively on these contracts (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatus, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items and derive its totals.

        ``data`` must include ``customer_id``, ``status_id`` and ``items``
        (dicts with ``product_id``, ``quantity``, ``unit_price``,
        ``tax_rate``).  Optional keys: ``discount``, ``coupon_id``,
        ``delivery_method_id``, ``notes`` and the ``shipping_*`` snapshot.
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Returns ``None`` for non-existent or invalid IDs.
        """

    @abstractmethod
    def replace_items(self, order: Order, items: List[Dict[str, Any]]) -> Order:
        """Replace every line of *order* and re-derive its totals."""

    @abstractmethod
    def add_history(
        self,
        order: Order,
        new_status: OrderStatus,
        old_status: Optional[OrderStatus] = None,
        notes: str = "",
        user: Any = None,
    ) -> OrderStatusHistory:
        """Append a status change to the order's audit trail."""


class IOrderStatusRepository(IRepository["OrderStatus"]):
    """Repository contract for the order status graph."""

    @abstractmethod
    def get_by_code(self, code: str) -> Optional[OrderStatus]:
        """Retrieve a status by (case-insensitive) code."""

    @abstractmethod
    def get_default(self) -> Optional[OrderStatus]:
        """Return the status assigned to new orders, if configured."""

    @abstractmethod
    def code_exists(self, code: str, exclude_id: Optional[UUID] = None) -> bool:
        """Whether another status already uses *code*."""

    @abstractmethod
    def is_in_use(self, id: UUID) -> bool:
        """Whether any order currently references the status."""

    @abstractmethod
    def is_transition_target(self, id: UUID) -> bool:
        """Whether another status lists this one among its successors."""

    @abstractmethod
    def set_transitions(self, status: OrderStatus, target_ids: Iterable[UUID]) -> None:
        """Replace the allowed successors of *status*."""

    @abstractmethod
    def set_default(self, id: UUID) -> Optional[OrderStatus]:
        """Make *id* the only default status.  ``None`` if it does not exist."""
