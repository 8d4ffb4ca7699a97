"""Notification sink implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from modules.notifications.interfaces import INotificationSink
from modules.notifications.tasks import send_order_notification

if TYPE_CHECKING:
    from modules.notifications.dtos import OrderNotificationDTO

logger = structlog.get_logger(__name__)


class CeleryNotificationSink(INotificationSink):
    """Enqueue notifications on the Celery broker."""

    def send_order_notification(self, notification: OrderNotificationDTO) -> None:
        send_order_notification.delay(notification.model_dump(mode="json"))
        logger.info(
            "notification.enqueued",
            order_id=str(notification.order_id),
        )
