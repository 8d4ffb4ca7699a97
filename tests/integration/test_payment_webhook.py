"""Payment gateway webhook."""

import json
import uuid

import pytest
from django.conf import settings as django_settings

from modules.orders.models import Order
from modules.payments.services import sign_payload

pytestmark = pytest.mark.integration

WEBHOOK_URL = "/api/v1/payments/webhook/"


@pytest.fixture()
def awaiting_order(statuses, place_order, payment_selector, payment_methods, product):
    order = place_order((product, 1))
    return payment_selector.select_payment_method(order.id, "MERCADO_PAGO")


def notify(
    client, order_id, status="approved", payment_id="PAY-123", signature=None
):
    body = json.dumps(
        {"order_id": str(order_id), "payment_id": payment_id, "status": status}
    )
    if signature is None:
        signature = sign_payload(body.encode(), django_settings.PAYMENT_WEBHOOK_SECRET)
    return client.post(
        WEBHOOK_URL,
        body,
        content_type="application/json",
        HTTP_X_WEBHOOK_SIGNATURE=signature,
    )


class TestPaymentWebhook:
    def test_approved_payment_completes_order(self, api_client, awaiting_order):
        assert awaiting_order.status.code == "AWAITING_PAYMENT"

        response = notify(api_client, awaiting_order.id)

        assert response.status_code == 200
        assert response.json() == {
            "order_id": str(awaiting_order.id),
            "payment_id": "PAY-123",
            "status": "approved",
            "processed": True,
        }
        order = Order.objects.get(id=awaiting_order.id)
        assert order.status.code == "COMPLETED"
        entry = order.status_history.get(new_status__code="COMPLETED")
        assert entry.notes == "Pago aprobado con ID PAY-123"

    def test_repeated_delivery_is_acknowledged(self, api_client, awaiting_order):
        notify(api_client, awaiting_order.id)
        history_count = awaiting_order.status_history.count()

        response = notify(api_client, awaiting_order.id)

        assert response.status_code == 200
        assert response.json()["processed"] is False
        assert awaiting_order.status_history.count() == history_count

    @pytest.mark.parametrize("status", ["pending", "REJECTED", "in_process"])
    def test_other_statuses_are_ignored(self, api_client, awaiting_order, status):
        response = notify(api_client, awaiting_order.id, status=status)

        assert response.status_code == 200
        assert response.json()["processed"] is False
        awaiting_order.refresh_from_db()
        assert awaiting_order.status.code == "AWAITING_PAYMENT"

    def test_unknown_order(self, api_client, statuses):
        response = notify(api_client, uuid.uuid4())
        assert response.status_code == 404

    def test_blank_payment_id(self, api_client, awaiting_order):
        response = notify(api_client, awaiting_order.id, payment_id="  ")
        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "payment_id"


class TestWebhookSignature:
    @pytest.mark.parametrize(
        "signature",
        ["", "sha256=forged", sign_payload(b"other body", "test-webhook-secret")],
    )
    def test_bad_signature_rejected(self, api_client, awaiting_order, signature):
        response = notify(api_client, awaiting_order.id, signature=signature)

        assert response.status_code == 401
        assert response.json()["type"] == "client_error"
        awaiting_order.refresh_from_db()
        assert awaiting_order.status.code == "AWAITING_PAYMENT"

    def test_other_secret_rejected(self, api_client, awaiting_order):
        payload = {"order_id": str(awaiting_order.id), "payment_id": "X"}
        body = json.dumps({**payload, "status": "approved"})
        response = notify(
            api_client,
            awaiting_order.id,
            payment_id="X",
            signature=sign_payload(body.encode(), "guessed-secret"),
        )
        assert response.status_code == 401

    def test_unconfigured_secret_rejects_everything(
        self, api_client, awaiting_order, settings
    ):
        settings.PAYMENT_WEBHOOK_SECRET = ""
        response = notify(
            api_client, awaiting_order.id, signature=sign_payload(b"{}", "")
        )
        assert response.status_code == 401


class TestOrderMustAwaitGatewayPayment:
    def test_order_without_payment_method(
        self, api_client, statuses, place_order, product
    ):
        order = place_order((product, 1))

        response = notify(api_client, order.id)

        assert response.status_code == 409
        order.refresh_from_db()
        assert order.status.code == "PENDING"

    def test_cash_order(
        self,
        api_client,
        statuses,
        place_order,
        payment_selector,
        payment_methods,
        product,
    ):
        order = payment_selector.select_payment_method(
            place_order((product, 1)).id, "CASH"
        )
        assert order.status.code == "CONFIRMED"

        response = notify(api_client, order.id)

        assert response.status_code == 409
        assert response.json()["errors"][0]["attr"] == "order_id"
        order.refresh_from_db()
        assert order.status.code == "CONFIRMED"

    def test_gateway_order_no_longer_awaiting(
        self, api_client, awaiting_order, transition_service
    ):
        transition_service.change_status_by_code(awaiting_order.id, "PENDING")

        response = notify(api_client, awaiting_order.id)

        assert response.status_code == 409
        awaiting_order.refresh_from_db()
        assert awaiting_order.status.code == "PENDING"
