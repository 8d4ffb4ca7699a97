"""Checkout customer and shipping address resolution.

``CustomerResolver`` turns the ``CustomerIdentity`` decided at the API
boundary into a ``Customer`` row, and the checkout address fields into the
shipping snapshot stored on the order.

Guest rules:
- an e-mail owned by a registered account cannot be used as a guest
  ("Email ya registrado. Inicia sesión."), unless it is a generated guest
  address, which is never a real account;
- guests must type the address; saved addresses belong to accounts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog

from modules.customers.dtos import RegisteredIdentity
from modules.customers.exceptions import (
    AddressNotFound,
    CustomerProfileMissing,
    EmailAlreadyRegistered,
    InvalidAddress,
    NeighborhoodNotFound,
)
from modules.customers.guest import is_guest_email
from modules.orders.exceptions import InvalidOrderData

if TYPE_CHECKING:
    from modules.customers.dtos import CustomerIdentity, GuestIdentity
    from modules.customers.models import Address, Customer
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.delivery.models import DeliveryMethod
    from modules.orders.dtos import CreateOrderDTO

logger = structlog.get_logger(__name__)

PROFILE_MISSING_MESSAGE = "Perfil de cliente no encontrado para el usuario autenticado."
EMAIL_REGISTERED_MESSAGE = "Email ya registrado. Inicia sesión."
ADDRESS_REQUIRED_MESSAGE = (
    "Debes seleccionar una dirección guardada o ingresar una nueva "
    "dirección de envío."
)


def snapshot_from_address(address: Address) -> Dict[str, Any]:
    return {
        "shipping_address": address,
        "shipping_recipient_name": address.recipient_name,
        "shipping_phone": address.phone,
        "shipping_street_address": address.street_address,
        "shipping_postal_code": address.postal_code,
        "shipping_additional_info": address.additional_info,
        "shipping_neighborhood": address.neighborhood,
        "shipping_city": address.city,
        "shipping_neighborhood_name": address.neighborhood.name,
        "shipping_city_name": address.city.name if address.city else "",
    }


class CustomerResolver:
    """Resolve who is buying and where the order goes."""

    def __init__(self, customer_repository: ICustomerRepository) -> None:
        self._customer_repo = customer_repository

    # ------------------------------------------------------------------
    # Customer
    # ------------------------------------------------------------------

    def resolve_customer(self, identity: CustomerIdentity) -> Customer:
        """Return the customer for *identity*, creating guests on demand.

        Raises:
            CustomerProfileMissing: an authenticated user has no customer.
            EmailAlreadyRegistered: a guest used a registered account e-mail.
        """
        if isinstance(identity, RegisteredIdentity):
            customer = self._customer_repo.get_by_user_id(identity.user_id)
            if not customer:
                logger.warning(
                    "checkout.customer_profile_missing", user_id=identity.user_id
                )
                raise CustomerProfileMissing(PROFILE_MISSING_MESSAGE)
            return customer
        return self._resolve_guest(identity)

    def _resolve_guest(self, identity: GuestIdentity) -> Customer:
        email = str(identity.email)
        guest_pattern = is_guest_email(email)

        if not guest_pattern and self._customer_repo.get_registered_by_email(email):
            logger.info("checkout.guest_email_registered")
            raise EmailAlreadyRegistered(
                EMAIL_REGISTERED_MESSAGE, attr="customer_email"
            )

        customer = self._customer_repo.get_guest_by_email(email)
        if customer:
            return customer
        return self._customer_repo.create({"name": identity.name, "email": email})

    # ------------------------------------------------------------------
    # Shipping
    # ------------------------------------------------------------------

    def resolve_shipping(
        self,
        customer: Customer,
        dto: CreateOrderDTO,
        delivery_method: Optional[DeliveryMethod],
        is_guest: bool,
    ) -> Dict[str, Any]:
        """Build the order's shipping snapshot.

        Without a delivery method the order is shipped, so an address is
        required.  Methods that do not require an address (pickup) yield an
        empty snapshot and ignore any address fields.

        Raises:
            InvalidOrderData: no address, or a guest chose a saved address.
            AddressNotFound: the saved address is unknown or not the customer's.
            InvalidAddress: the new address is incomplete or inconsistent.
            NeighborhoodNotFound: the neighborhood is unknown or inactive.
        """
        if delivery_method is not None and not delivery_method.requires_address:
            return {}

        if dto.selected_address_id:
            if is_guest:
                raise InvalidOrderData(
                    "Los invitados deben ingresar la dirección de envío.",
                    attr="selected_address_id",
                )
            address = self._customer_repo.get_address_by_id(
                str(dto.selected_address_id)
            )
            if not address or address.customer_id != customer.id:
                raise AddressNotFound(
                    f"Dirección {dto.selected_address_id} no encontrada.",
                    attr="selected_address_id",
                )
            return snapshot_from_address(address)

        if not dto.has_explicit_address:
            raise InvalidOrderData(
                ADDRESS_REQUIRED_MESSAGE, attr="shipping_street_address"
            )

        missing = dto.missing_shipping_fields()
        if missing:
            raise InvalidAddress(
                f"Faltan datos de envío: {', '.join(missing)}.", attr=missing[0]
            )

        neighborhood = self._customer_repo.get_neighborhood_by_id(
            str(dto.shipping_neighborhood_id)
        )
        if not neighborhood:
            raise NeighborhoodNotFound(
                f"Barrio {dto.shipping_neighborhood_id} no encontrado.",
                attr="shipping_neighborhood_id",
            )
        if dto.shipping_city_id and dto.shipping_city_id != neighborhood.city_id:
            raise InvalidAddress(
                "El barrio no pertenece a la ciudad indicada.", attr="shipping_city_id"
            )

        return {
            "shipping_recipient_name": dto.shipping_recipient_name,
            "shipping_phone": dto.shipping_phone,
            "shipping_street_address": dto.shipping_street_address,
            "shipping_postal_code": dto.shipping_postal_code or "",
            "shipping_additional_info": dto.shipping_additional_info or "",
            "shipping_neighborhood": neighborhood,
            "shipping_city": neighborhood.city,
            "shipping_neighborhood_name": neighborhood.name,
            "shipping_city_name": neighborhood.city.name,
        }
