"""Unit tests for AddressService (customer address book)."""

from __future__ import annotations

from uuid import uuid4

import pytest
from django.contrib.auth import get_user_model
from pydantic import ValidationError

from modules.customers.dtos import CreateAddressDTO
from modules.customers.exceptions import (
    AddressNotFound,
    CustomerProfileMissing,
    NeighborhoodNotFound,
)
from modules.customers.models import Address, Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.services import AddressService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return AddressService(repository=CustomerDjangoRepository())


def address_dto(neighborhood, **overrides):
    data = {
        "recipient_name": "Ana Pérez",
        "phone": "+54 341 555-0000",
        "street_address": "Mitre 500",
        "neighborhood_id": neighborhood.id,
    }
    data.update(overrides)
    return CreateAddressDTO(**data)


class TestCreateAddress:
    def test_first_address_becomes_default(
        self, service, customer_user, registered_customer, neighborhood
    ):
        address = service.create_address(customer_user.pk, address_dto(neighborhood))
        assert address.is_default
        assert address.city_id == neighborhood.city_id

    def test_second_address_is_not_default_unless_asked(
        self, service, customer_user, registered_customer, neighborhood
    ):
        service.create_address(customer_user.pk, address_dto(neighborhood))
        second = service.create_address(
            customer_user.pk, address_dto(neighborhood, street_address="Sarmiento 1")
        )
        assert not second.is_default

    def test_new_default_replaces_previous(
        self, service, customer_user, registered_customer, neighborhood
    ):
        first = service.create_address(customer_user.pk, address_dto(neighborhood))
        second = service.create_address(
            customer_user.pk,
            address_dto(neighborhood, street_address="Sarmiento 1", is_default=True),
        )
        first.refresh_from_db()
        assert second.is_default
        assert not first.is_default

    def test_unknown_neighborhood(
        self, service, customer_user, registered_customer, neighborhood
    ):
        dto = address_dto(neighborhood, neighborhood_id=uuid4())
        with pytest.raises(NeighborhoodNotFound):
            service.create_address(customer_user.pk, dto)

    def test_user_without_customer(self, service, staff_user, neighborhood):
        with pytest.raises(CustomerProfileMissing):
            service.create_address(staff_user.pk, address_dto(neighborhood))

    @pytest.mark.parametrize("phone", ["123", "phone-number", "+54 341 555 0000 000"])
    def test_phone_pattern(self, neighborhood, phone):
        with pytest.raises(ValidationError):
            address_dto(neighborhood, phone=phone)


class TestSetDefault:
    def test_exactly_one_default(
        self, service, customer_user, registered_customer, neighborhood
    ):
        first = service.create_address(customer_user.pk, address_dto(neighborhood))
        second = service.create_address(
            customer_user.pk, address_dto(neighborhood, street_address="Sarmiento 1")
        )

        service.set_default_address(customer_user.pk, str(second.id))

        defaults = Address.objects.filter(customer=registered_customer, is_default=True)
        assert [a.id for a in defaults] == [second.id]
        first.refresh_from_db()
        assert not first.is_default

    def test_address_of_other_customer(
        self, service, customer_user, registered_customer, neighborhood
    ):
        other = get_user_model().objects.create_user(username="otro")
        Customer.objects.create(user=other, name="Otro", email="otro@example.com")
        foreign = service.create_address(other.pk, address_dto(neighborhood))

        with pytest.raises(AddressNotFound):
            service.set_default_address(customer_user.pk, str(foreign.id))

    def test_list_puts_default_first(
        self, service, customer_user, registered_customer, neighborhood
    ):
        service.create_address(customer_user.pk, address_dto(neighborhood))
        second = service.create_address(
            customer_user.pk, address_dto(neighborhood, street_address="Sarmiento 1")
        )
        service.set_default_address(customer_user.pk, str(second.id))

        addresses = service.list_addresses(customer_user.pk)

        assert addresses[0].id == second.id
        assert len(addresses) == 2
