"""Address book service layer (Use Cases).

Registered customers manage their own saved addresses.  Every operation
starts by resolving the customer linked to the authenticated user: a user
without a customer profile is a data inconsistency, reported as
``CustomerProfileMissing``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

import structlog
from django.db import transaction

from modules.customers.exceptions import (
    AddressNotFound,
    CustomerProfileMissing,
    NeighborhoodNotFound,
)

if TYPE_CHECKING:
    from modules.customers.dtos import CreateAddressDTO
    from modules.customers.models import Address, Customer
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class AddressService:
    """Application service for the customer address book."""

    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    def get_customer_for_user(self, user_id: Any) -> Customer:
        customer = self._repo.get_by_user_id(user_id)
        if not customer:
            logger.warning("customer.profile_missing", user_id=user_id)
            raise CustomerProfileMissing(
                "Perfil de cliente no encontrado para el usuario autenticado."
            )
        return customer

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_addresses(self, user_id: Any) -> List[Address]:
        customer = self.get_customer_for_user(user_id)
        return self._repo.list_addresses(customer.id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_address(self, user_id: Any, dto: CreateAddressDTO) -> Address:
        """Save a new address for the user's customer.

        The city is taken from the neighborhood.  The first address of a
        customer always becomes the default one.

        Raises:
            CustomerProfileMissing: the user has no customer record.
            NeighborhoodNotFound: unknown or inactive neighborhood.
        """
        customer = self.get_customer_for_user(user_id)
        neighborhood = self._repo.get_neighborhood_by_id(str(dto.neighborhood_id))
        if not neighborhood:
            raise NeighborhoodNotFound(
                f"Barrio {dto.neighborhood_id} no encontrado.",
                attr="neighborhood_id",
            )

        return self._repo.create_address(
            {
                "customer_id": customer.id,
                "recipient_name": dto.recipient_name,
                "phone": dto.phone,
                "street_address": dto.street_address,
                "neighborhood": neighborhood,
                "postal_code": dto.postal_code,
                "additional_info": dto.additional_info,
                "alias": dto.alias,
                "is_default": dto.is_default,
            }
        )

    def set_default_address(self, user_id: Any, address_id: str) -> Address:
        """Make *address_id* the customer's only default address.

        Raises:
            CustomerProfileMissing: the user has no customer record.
            AddressNotFound: the address is unknown or owned by someone else.
        """
        customer = self.get_customer_for_user(user_id)
        address = self._repo.set_default_address(customer.id, address_id)
        if not address:
            raise AddressNotFound(f"Dirección {address_id} no encontrada.")
        return address
