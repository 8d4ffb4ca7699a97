"""Customer directory interface.

Extends ``IRepository[Customer]`` with the look-ups checkout needs
(by user, by e-mail) and with the address book operations, including
default-address management.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Address, Customer, Neighborhood


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer aggregate and its addresses."""

    @abstractmethod
    def get_by_user_id(self, user_id: Any) -> Optional[Customer]:
        """Retrieve the customer linked to an authenticated user."""

    @abstractmethod
    def get_registered_by_email(self, email: str) -> Optional[Customer]:
        """Retrieve a customer bound to a user account by e-mail."""

    @abstractmethod
    def get_guest_by_email(self, email: str) -> Optional[Customer]:
        """Retrieve a guest (no user) customer by e-mail."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Customer:
        """Create a customer from ``name``, ``email``, ``phone`` and ``user_id``."""

    # ------------------------------------------------------------------
    # Address book
    # ------------------------------------------------------------------

    @abstractmethod
    def get_address_by_id(self, id: str) -> Optional[Address]:
        """Retrieve an address with neighborhood and city loaded."""

    @abstractmethod
    def list_addresses(self, customer_id: Any) -> List[Address]:
        """Return the customer's addresses, default first."""

    @abstractmethod
    def create_address(self, data: Dict[str, Any]) -> Address:
        """Create an address; the customer's first address becomes default."""

    @abstractmethod
    def set_default_address(
        self, customer_id: Any, address_id: str
    ) -> Optional[Address]:
        """Atomically make *address_id* the only default of the customer.

        Returns ``None`` when the address does not belong to the customer.
        """

    @abstractmethod
    def get_neighborhood_by_id(self, id: str) -> Optional[Neighborhood]:
        """Retrieve an active neighborhood with its city loaded."""
