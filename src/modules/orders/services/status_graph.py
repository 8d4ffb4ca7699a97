"""Order status graph.

The graph is stored as ids only (``OrderStatus.can_transition_to``).
Human-entered references (codes or ids) are resolved once, when an admin
writes the graph, never when a transition is checked.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, NewType, Optional
from uuid import UUID

from modules.orders.exceptions import InvalidStatusTransitions

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderStatusRepository

StatusId = NewType("StatusId", UUID)

SELF_TRANSITION_MESSAGE = "Un estado no puede hacer transición a sí mismo"


def _as_uuid(ref: str) -> Optional[UUID]:
    try:
        return UUID(str(ref))
    except ValueError:
        return None


class OrderStatusGraph:
    """Answers whether an order may move between two statuses."""

    def __init__(self, status_repository: IOrderStatusRepository) -> None:
        self._status_repo = status_repository

    def is_transition_allowed(self, from_id: UUID, to_id: UUID) -> bool:
        """``True`` when both statuses exist and *to_id* is a successor.

        A status without successors is open: it may move anywhere.
        Whether the target is active is the caller's concern.
        """
        source = self._status_repo.get_by_id(str(from_id))
        if source is None or self._status_repo.get_by_id(str(to_id)) is None:
            return False
        allowed = source.allowed_transition_ids()
        return not allowed or to_id in allowed

    def resolve_targets(
        self,
        refs: Iterable[str],
        owner_id: Optional[UUID] = None,
        owner_code: Optional[str] = None,
    ) -> frozenset[StatusId]:
        """Turn ids or codes into status ids.

        Raises:
            InvalidStatusTransitions: a reference matches no status, or it
                points at the status being edited (*owner_id* / *owner_code*).
        """
        resolved: set[StatusId] = set()
        for ref in refs:
            ref = str(ref).strip()
            if owner_code and ref.upper() == owner_code.upper():
                raise InvalidStatusTransitions(
                    SELF_TRANSITION_MESSAGE, attr="can_transition_to"
                )

            ref_id = _as_uuid(ref)
            if ref_id is not None:
                status = self._status_repo.get_by_id(str(ref_id))
            else:
                status = self._status_repo.get_by_code(ref)
            if status is None:
                raise InvalidStatusTransitions(
                    f"Estado de transición no encontrado: '{ref}'",
                    attr="can_transition_to",
                )
            if owner_id is not None and status.id == owner_id:
                raise InvalidStatusTransitions(
                    SELF_TRANSITION_MESSAGE, attr="can_transition_to"
                )
            resolved.add(StatusId(status.id))
        return frozenset(resolved)
