"""Base repository contract.

Every module's repository interface extends ``IRepository[T]``; services
receive the interface through their constructor and never touch the ORM
directly, so tests can hand them any implementation.

Look-ups take the id as ``UUID`` or its string form.  A malformed id is
treated like a missing row: ``get_by_id`` returns ``None``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar, Union
from uuid import UUID

T = TypeVar("T")

EntityId = Union[UUID, str]


class IRepository(ABC, Generic[T]):
    """Persistence port for one aggregate type ``T``."""

    @abstractmethod
    def get_by_id(self, id: EntityId) -> Optional[T]:
        """Return the entity or ``None`` when absent or the id is malformed."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[T]:
        """Return the entities matching *filters*."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Insert or update ``entity`` and return it."""

    @abstractmethod
    def delete(self, id: EntityId) -> bool:
        """Delete by id; ``False`` when nothing was removed."""
