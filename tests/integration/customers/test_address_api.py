"""Customer address book over HTTP."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration

ADDRESSES_URL = "/api/v1/addresses/"


@pytest.fixture()
def address_payload(neighborhood):
    return {
        "recipient_name": "Ana Pérez",
        "phone": "+54 341 555-0000",
        "street_address": "Mitre 500",
        "neighborhood_id": str(neighborhood.id),
        "alias": "Casa",
    }


class TestAddressApi:
    def test_create_first_address(self, customer_client, address_payload):
        response = customer_client.post(ADDRESSES_URL, address_payload, format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["is_default"] is True
        assert body["neighborhood_name"] == "Centro"
        assert body["city_name"] == "Rosario"

    def test_list_own_addresses(self, customer_client, address_payload):
        customer_client.post(ADDRESSES_URL, address_payload, format="json")
        address_payload["alias"] = "Trabajo"
        customer_client.post(ADDRESSES_URL, address_payload, format="json")

        response = customer_client.get(ADDRESSES_URL)

        assert response.status_code == 200
        assert [a["alias"] for a in response.json()] == ["Casa", "Trabajo"]

    def test_set_default(self, customer_client, address_payload):
        customer_client.post(ADDRESSES_URL, address_payload, format="json")
        address_payload["alias"] = "Trabajo"
        work = customer_client.post(
            ADDRESSES_URL, address_payload, format="json"
        ).json()

        response = customer_client.post(f"{ADDRESSES_URL}{work['id']}/set-default/")

        assert response.status_code == 200
        assert response.json()["is_default"] is True
        listed = customer_client.get(ADDRESSES_URL).json()
        assert [a["alias"] for a in listed if a["is_default"]] == ["Trabajo"]

    def test_invalid_phone(self, customer_client, address_payload):
        address_payload["phone"] = "abc"
        response = customer_client.post(ADDRESSES_URL, address_payload, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "phone"

    def test_user_without_profile(self, staff_client, address_payload):
        response = staff_client.post(ADDRESSES_URL, address_payload, format="json")
        assert response.status_code == 401

    def test_requires_authentication(self, api_client):
        assert api_client.get(ADDRESSES_URL).status_code == 401
