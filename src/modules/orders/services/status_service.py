"""Order status administration (Use Cases).

Statuses are reference data edited by staff.  Every mutation keeps the
graph consistent:
- status codes are unique;
- exactly one status is the default once one has been chosen;
- transition targets are resolved to ids at write time and never point
  at the status itself;
- a status referenced by orders or by another status's transitions (or
  the default one) cannot be deleted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import QuerySet

from modules.orders.exceptions import (
    InactiveOrderStatus,
    OrderStatusAlreadyExists,
    OrderStatusInUse,
    OrderStatusNotFound,
)
from modules.orders.models import OrderStatus
from modules.orders.services.status_graph import OrderStatusGraph

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderStatusDTO, UpdateOrderStatusDTO
    from modules.orders.repositories.interfaces import IOrderStatusRepository

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = ("code", "name", "description", "color", "order", "is_active")


class OrderStatusService:
    """Application service for the order status graph."""

    def __init__(
        self,
        status_repository: IOrderStatusRepository,
        graph: Optional[OrderStatusGraph] = None,
    ) -> None:
        self._status_repo = status_repository
        self._graph = graph or OrderStatusGraph(status_repository)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_statuses(self, active_only: bool = False) -> QuerySet:
        return self._status_repo.list({"is_active": True} if active_only else None)

    def get_status(self, status_id: str) -> OrderStatus:
        status = self._status_repo.get_by_id(status_id)
        if not status:
            raise OrderStatusNotFound(f"Estado {status_id} no encontrado.")
        return status

    def validate_transition(self, from_status_id: UUID, to_status_id: UUID) -> bool:
        """Whether an order in *from_status_id* may move to *to_status_id*.

        Raises:
            OrderStatusNotFound: either status does not exist.
            InactiveOrderStatus: the target status is disabled.
        """
        source = self._status_repo.get_by_id(str(from_status_id))
        if not source:
            raise OrderStatusNotFound(
                "Estado de origen no encontrado", attr="from_status_id"
            )
        target = self._status_repo.get_by_id(str(to_status_id))
        if not target:
            raise OrderStatusNotFound(
                "Estado de destino no encontrado", attr="to_status_id"
            )
        if not target.is_active:
            raise InactiveOrderStatus(
                f"El estado '{target.name}' no está activo", attr="to_status_id"
            )
        return self._graph.is_transition_allowed(source.id, target.id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_status(self, dto: CreateOrderStatusDTO) -> OrderStatus:
        """Create a status, resolving its transition targets first.

        Raises:
            OrderStatusAlreadyExists: the code is taken.
            InvalidStatusTransitions: a target is unknown or the status itself.
        """
        if self._status_repo.code_exists(dto.code):
            raise OrderStatusAlreadyExists(
                f"Ya existe un estado con código '{dto.code}'", attr="code"
            )
        target_ids = self._graph.resolve_targets(
            dto.can_transition_to, owner_code=dto.code
        )

        status = self._status_repo.save(
            OrderStatus(
                code=dto.code,
                name=dto.name,
                description=dto.description,
                color=dto.color,
                order=dto.order,
                is_active=dto.is_active,
                is_default=dto.is_default,
            )
        )
        self._status_repo.set_transitions(status, target_ids)

        logger.info(
            "order_status.created",
            status_id=str(status.id),
            code=status.code,
            is_default=status.is_default,
        )
        return self.get_status(str(status.id))

    @transaction.atomic
    def update_status(self, status_id: str, dto: UpdateOrderStatusDTO) -> OrderStatus:
        """Apply the non-``None`` fields of *dto*.

        Raises:
            OrderStatusNotFound: the status does not exist.
            OrderStatusAlreadyExists: the new code is taken.
            OrderStatusInUse: the default flag would be removed without a
                replacement.
            InvalidStatusTransitions: a target is unknown or the status itself.
        """
        status = self.get_status(status_id)
        log = logger.bind(status_id=str(status.id), code=status.code)

        if dto.code and self._status_repo.code_exists(dto.code, exclude_id=status.id):
            raise OrderStatusAlreadyExists(
                f"Ya existe un estado con código '{dto.code}'", attr="code"
            )
        if dto.is_default is False and status.is_default:
            raise OrderStatusInUse(
                "Debe existir un estado por defecto: marca otro estado como "
                "predeterminado.",
                attr="is_default",
            )

        target_ids = None
        if dto.can_transition_to is not None:
            target_ids = self._graph.resolve_targets(
                dto.can_transition_to, owner_id=status.id
            )

        for field in EDITABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(status, field, value)
        if dto.is_default:
            status.is_default = True

        self._status_repo.save(status)
        if target_ids is not None:
            self._status_repo.set_transitions(status, target_ids)

        log.info("order_status.updated", is_default=status.is_default)
        return self.get_status(str(status.id))

    @transaction.atomic
    def replace_transitions(self, status_id: str, refs: list[str]) -> OrderStatus:
        status = self.get_status(status_id)
        target_ids = self._graph.resolve_targets(refs, owner_id=status.id)
        self._status_repo.set_transitions(status, target_ids)
        return self.get_status(str(status.id))

    def set_default(self, status_id: str) -> OrderStatus:
        status = self._status_repo.set_default(status_id)
        if not status:
            raise OrderStatusNotFound(f"Estado {status_id} no encontrado.")
        logger.info(
            "order_status.default_changed",
            status_id=str(status.id),
            code=status.code,
        )
        return self.get_status(str(status.id))

    @transaction.atomic
    def delete_status(self, status_id: str) -> None:
        """Delete a status nobody references.

        Raises:
            OrderStatusNotFound: the status does not exist.
            OrderStatusInUse: the status is the default, orders use it, or
                another status lists it as a successor.
        """
        status = self.get_status(status_id)
        if status.is_default:
            raise OrderStatusInUse("No se puede eliminar el estado por defecto")
        if self._status_repo.is_in_use(status.id):
            raise OrderStatusInUse(
                "No se puede eliminar un estado que está siendo usado en pedidos"
            )
        # Dropping the M2M rows would leave predecessors with no successors,
        # which the graph reads as "any transition allowed".
        if self._status_repo.is_transition_target(status.id):
            raise OrderStatusInUse(
                "No se puede eliminar un estado al que otros estados pueden "
                "transicionar: actualiza primero sus transiciones"
            )
        self._status_repo.delete(str(status.id))
        logger.info("order_status.removed", status_id=str(status.id), code=status.code)
