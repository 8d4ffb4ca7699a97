"""Celery wiring and the order notification task (eager mode)."""

import pytest
from django.core import mail

from modules.notifications.dtos import OrderNotificationDTO
from modules.notifications.tasks import send_order_notification

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _celery_eager(settings):
    """Run tasks synchronously in the test process."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


class TestCeleryConfig:
    def test_celery_app_exported_from_init(self):
        from config import celery_app
        from config.celery import app

        assert celery_app is app
        assert app.main == "orders"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE


class TestOrderNotificationTask:
    @pytest.fixture()
    def payload(self, statuses, place_order, product):
        order = place_order((product, 2))
        return OrderNotificationDTO.from_entity(order).model_dump(mode="json")

    def test_skipped_without_recipients(self, settings, payload):
        settings.ORDER_NOTIFICATION_RECIPIENTS = []

        result = send_order_notification.delay(payload)

        assert result.successful()
        assert result.result == {"status": "skipped", "sent": 0}
        assert mail.outbox == []

    def test_sends_summary(self, settings, payload):
        settings.ORDER_NOTIFICATION_RECIPIENTS = ["ventas@example.com"]

        result = send_order_notification.delay(payload)

        assert result.result == {"status": "sent", "sent": 1}
        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.subject == f"Nueva orden {payload['order_number']}"
        assert message.to == ["ventas@example.com"]
        assert "Yerba Mate 1kg" in message.body
        assert "[invitado]" in message.body

    def test_api_checkout_enqueues_notification(
        self, settings, api_client, statuses, pickup, product
    ):
        settings.ORDER_NOTIFICATION_RECIPIENTS = ["ventas@example.com"]
        payload = {
            "customer_name": "Invitado",
            "customer_email": "invitado@example.com",
            "delivery_method_id": str(pickup.id),
            "items": [
                {"product_id": str(product.id), "quantity": 1, "unit_price": "1210"}
            ],
        }

        response = api_client.post("/api/v1/orders/", payload, format="json")

        assert response.status_code == 201
        assert len(mail.outbox) == 1
        assert response.json()["order_number"] in mail.outbox[0].subject
