"""Tareas asíncronas de notificación."""

from __future__ import annotations

from typing import Any, Dict

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from modules.notifications.dtos import OrderNotificationDTO

logger = structlog.get_logger(__name__)


@shared_task(name="notifications.send_order_notification")
def send_order_notification(payload: Dict[str, Any]) -> Dict[str, Any]:
    """E-mail a new-order summary to the configured recipients."""
    notification = OrderNotificationDTO.model_validate(payload)
    log = logger.bind(order_id=str(notification.order_id))

    recipients = list(getattr(settings, "ORDER_NOTIFICATION_RECIPIENTS", []))
    if not recipients:
        log.info("notification.skipped", reason="no_recipients")
        return {"status": "skipped", "sent": 0}

    sent = send_mail(
        subject=f"Nueva orden {notification.order_number}",
        message=notification.render_message(),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=recipients,
    )
    log.info("notification.sent", recipients=len(recipients))
    return {"status": "sent", "sent": sent}
