"""Checkout through POST /api/v1/orders/."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.customers.models import Customer
from modules.products.models import Product

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def line(product, quantity=1, unit_price=None):
    return {
        "product_id": str(product.id),
        "quantity": quantity,
        "unit_price": str(unit_price or product.price_with_tax),
    }


@pytest.fixture()
def guest_payload(pickup, product):
    return {
        "customer_name": "Invitado",
        "customer_email": "invitado@example.com",
        "delivery_method_id": str(pickup.id),
        "items": [line(product, 2)],
    }


class TestGuestCheckout:
    def test_created(self, api_client, statuses, guest_payload, product):
        response = api_client.post(ORDERS_URL, guest_payload, format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["order_number"].startswith("ORD-")
        assert body["status"]["code"] == "PENDING"
        assert body["delivery_method"] == "PICKUP"
        assert body["shipping"] is None
        assert Decimal(body["total"]) == Decimal("2420.00")
        assert Decimal(body["tax_amount"]) == Decimal("420.00")
        assert [h["new_status"] for h in body["status_history"]] == ["PENDING"]

        product.refresh_from_db()
        assert product.stock_quantity == 8
        customer = Customer.objects.get(id=body["customer_id"])
        assert customer.is_guest

    def test_guest_customer_is_reused(self, api_client, statuses, guest_payload):
        first = api_client.post(ORDERS_URL, guest_payload, format="json").json()
        second = api_client.post(ORDERS_URL, guest_payload, format="json").json()

        assert first["customer_id"] == second["customer_id"]
        assert Customer.objects.filter(email="invitado@example.com").count() == 1

    def test_missing_email(self, api_client, statuses, guest_payload):
        del guest_payload["customer_email"]
        response = api_client.post(ORDERS_URL, guest_payload, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "customer_email"

    def test_email_of_registered_account(
        self, api_client, statuses, guest_payload, registered_customer
    ):
        guest_payload["customer_email"] = "ANA@example.com"
        response = api_client.post(ORDERS_URL, guest_payload, format="json")

        assert response.status_code == 409

    def test_generated_guest_email_skips_account_check(
        self, api_client, statuses, guest_payload
    ):
        email = "guest_1700000000_1_2_abc@checkout.guest"
        guest_payload["customer_email"] = email

        response = api_client.post(ORDERS_URL, guest_payload, format="json")

        assert response.status_code == 201

    def test_saved_address_with_new_address(
        self, api_client, statuses, guest_payload, neighborhood
    ):
        guest_payload.update(
            selected_address_id="0192f5a4-0000-7000-8000-000000000000",
            shipping_street_address="Mitre 500",
        )
        response = api_client.post(ORDERS_URL, guest_payload, format="json")

        assert response.status_code == 400

    def test_coupon_with_manual_discount(self, api_client, statuses, guest_payload):
        guest_payload.update(coupon_code="BIENVENIDA10", discount_rate="5")
        response = api_client.post(ORDERS_URL, guest_payload, format="json")

        assert response.status_code == 400
        detail = response.json()["errors"][0]["detail"]
        assert detail == "No se puede combinar un cupón con un descuento manual."

    def test_insufficient_stock_keeps_stock(
        self, api_client, statuses, guest_payload, product, cheap_product
    ):
        guest_payload["items"] = [line(cheap_product, 3), line(product, 11)]

        response = api_client.post(ORDERS_URL, guest_payload, format="json")

        assert response.status_code == 409
        assert Product.objects.get(id=cheap_product.id).stock_quantity == 100
        assert Product.objects.get(id=product.id).stock_quantity == 10


class TestShippingCheckout:
    def test_new_address_snapshot(
        self, api_client, statuses, guest_payload, home_delivery, neighborhood
    ):
        guest_payload.update(
            delivery_method_id=str(home_delivery.id),
            shipping_recipient_name="Ana Pérez",
            shipping_phone="+54 341 555-0000",
            shipping_street_address="Mitre 500",
            shipping_neighborhood_id=str(neighborhood.id),
        )

        response = api_client.post(ORDERS_URL, guest_payload, format="json")

        assert response.status_code == 201
        shipping = response.json()["shipping"]
        assert shipping["street_address"] == "Mitre 500"
        assert shipping["neighborhood_name"] == "Centro"
        assert shipping["city_name"] == "Rosario"
        assert shipping["address_id"] is None

    def test_delivery_requires_address(
        self, api_client, statuses, guest_payload, home_delivery
    ):
        guest_payload["delivery_method_id"] = str(home_delivery.id)

        response = api_client.post(ORDERS_URL, guest_payload, format="json")

        assert response.status_code == 400

    def test_registered_customer_uses_saved_address(
        self, customer_client, statuses, product, home_delivery, neighborhood
    ):
        address = customer_client.post(
            "/api/v1/addresses/",
            {
                "recipient_name": "Ana Pérez",
                "phone": "+54 341 555-0000",
                "street_address": "Mitre 500",
                "neighborhood_id": str(neighborhood.id),
            },
            format="json",
        ).json()

        response = customer_client.post(
            ORDERS_URL,
            {
                "delivery_method_id": str(home_delivery.id),
                "selected_address_id": address["id"],
                "items": [line(product)],
            },
            format="json",
        )

        assert response.status_code == 201
        body = response.json()
        assert body["shipping"]["address_id"] == address["id"]
        assert body["customer_id"] == str(
            Customer.objects.get(email="ana@example.com").id
        )


class TestThrottling:
    def test_order_creation_is_throttled(self, api_client, statuses, guest_payload):
        guest_payload["items"][0]["quantity"] = 1
        codes = [
            api_client.post(ORDERS_URL, guest_payload, format="json").status_code
            for _ in range(11)
        ]

        assert codes[:10] == [201] * 10
        assert codes[10] == 429
