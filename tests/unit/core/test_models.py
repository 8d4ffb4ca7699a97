"""Unit tests for the shared base models."""

from __future__ import annotations

import pytest

from modules.customers.models import Address, Customer
from modules.orders.models import OrderStatus

pytestmark = pytest.mark.unit


class TestBaseModel:
    def test_uuid7_primary_key(self):
        status = OrderStatus.objects.create(code="A", name="A")
        assert status.id.version == 7

    def test_update_fields_refreshes_updated_at(self):
        status = OrderStatus.objects.create(code="A", name="A")
        before = status.updated_at
        status.name = "Otro"
        status.save(update_fields=["name"])
        status.refresh_from_db()
        assert status.updated_at >= before
        assert status.name == "Otro"


class TestSingleDefaultModel:
    def test_table_wide_scope(self):
        first = OrderStatus.objects.create(code="A", name="A", is_default=True)
        second = OrderStatus.objects.create(code="B", name="B", is_default=True)

        first.refresh_from_db()
        assert second.is_default
        assert not first.is_default
        assert OrderStatus.objects.filter(is_default=True).count() == 1

    def test_mark_as_default(self):
        first = OrderStatus.objects.create(code="A", name="A", is_default=True)
        second = OrderStatus.objects.create(code="B", name="B")

        second.mark_as_default()

        assert list(
            OrderStatus.objects.filter(is_default=True).values_list("code", flat=True)
        ) == ["B"]
        first.refresh_from_db()
        assert not first.is_default

    def test_scoped_by_customer(self, neighborhood):
        ana = Customer.objects.create(name="Ana", email="ana@example.com")
        beto = Customer.objects.create(name="Beto", email="beto@example.com")

        def add(customer):
            return Address.objects.create(
                customer=customer,
                recipient_name=customer.name,
                phone="+54 341 555-0000",
                street_address="Mitre 500",
                neighborhood=neighborhood,
                is_default=True,
            )

        ana_home = add(ana)
        beto_home = add(beto)
        ana_work = add(ana)

        ana_home.refresh_from_db()
        beto_home.refresh_from_db()
        assert ana_work.is_default
        assert not ana_home.is_default
        assert beto_home.is_default
