"""Django ORM implementation of the Customer directory.

Satisfies ``ICustomerRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
instead of raising, and the Service Layer decides how to translate a
missing entity into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.customers.models import Address, Customer, Neighborhood
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Customer
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Customer]:
        """Retrieve a customer by primary key.

        Returns ``None`` for non-existent or invalid IDs (e.g. malformed UUID).
        """
        try:
            return Customer.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Customer]:
        queryset = Customer.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Customer) -> Customer:
        is_new = entity._state.adding
        entity.save()
        logger.info("customer.saved", customer_id=str(entity.id), is_new=is_new)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Deactivate a customer; records referenced by orders are never removed."""
        customer = self.get_by_id(id)
        if not customer:
            return False
        customer.is_active = False
        customer.save(update_fields=["is_active"])
        logger.info("customer.deactivated", customer_id=str(id))
        return True

    def get_by_user_id(self, user_id: Any) -> Optional[Customer]:
        if user_id is None:
            return None
        return Customer.objects.filter(user_id=user_id).first()

    def get_registered_by_email(self, email: str) -> Optional[Customer]:
        return (
            Customer.objects.filter(email=email.strip().lower(), user__isnull=False)
            .order_by("created_at")
            .first()
        )

    def get_guest_by_email(self, email: str) -> Optional[Customer]:
        return (
            Customer.objects.filter(email=email.strip().lower(), user__isnull=True)
            .order_by("created_at")
            .first()
        )

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Customer:
        customer = Customer(
            user_id=data.get("user_id"),
            name=data["name"],
            email=data["email"],
            phone=data.get("phone", ""),
        )
        customer.save()
        logger.info(
            "customer.created",
            customer_id=str(customer.id),
            is_guest=customer.is_guest,
        )
        return customer

    # ------------------------------------------------------------------
    # Address book
    # ------------------------------------------------------------------

    def get_address_by_id(self, id: str) -> Optional[Address]:
        try:
            return (
                Address.objects.select_related("neighborhood", "city")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list_addresses(self, customer_id: Any) -> List[Address]:
        return list(
            Address.objects.select_related("neighborhood", "city").filter(
                customer_id=customer_id
            )
        )

    @transaction.atomic
    def create_address(self, data: Dict[str, Any]) -> Address:
        customer_id = data["customer_id"]
        has_addresses = Address.objects.filter(customer_id=customer_id).exists()
        address = Address(
            customer_id=customer_id,
            recipient_name=data["recipient_name"],
            phone=data["phone"],
            street_address=data["street_address"],
            neighborhood=data["neighborhood"],
            city_id=data["neighborhood"].city_id,
            postal_code=data.get("postal_code", ""),
            additional_info=data.get("additional_info", ""),
            alias=data.get("alias", ""),
            is_default=bool(data.get("is_default")) or not has_addresses,
        )
        address.save()
        logger.info(
            "address.created",
            address_id=str(address.id),
            customer_id=str(customer_id),
            is_default=address.is_default,
        )
        return address

    @transaction.atomic
    def set_default_address(
        self, customer_id: Any, address_id: str
    ) -> Optional[Address]:
        try:
            address = (
                Address.objects.select_for_update()
                .filter(id=address_id, customer_id=customer_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None
        if not address:
            return None
        if not address.is_default:
            address.mark_as_default()
        logger.info(
            "address.default_set",
            address_id=str(address.id),
            customer_id=str(customer_id),
        )
        return self.get_address_by_id(str(address.id))

    def get_neighborhood_by_id(self, id: str) -> Optional[Neighborhood]:
        try:
            return (
                Neighborhood.objects.select_related("city")
                .filter(id=id, is_active=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None
