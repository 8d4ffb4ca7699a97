"""Payment gateway webhook handling.

Calls are signed by the gateway: ``X-Webhook-Signature`` carries
``sha256=<hex HMAC-SHA256 of the raw body>`` keyed with
``settings.PAYMENT_WEBHOOK_SECRET``.

An ``approved`` notification moves the order to
``settings.PAYMENT_APPROVED_STATUS_CODE`` through the order transition
service, so the status graph applies as for any other change.  Only orders
that chose a gateway payment method and are waiting for it are touched.
Gateways retry deliveries: an order already in the approved status is
acknowledged without a second transition.  Other payment statuses are
acknowledged and logged.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.conf import settings
from django.db import transaction

from modules.orders.constants import StatusCode
from modules.payments.exceptions import InvalidWebhookSignature, PaymentNotExpected
from modules.payments.models import PaymentMethodKind

if TYPE_CHECKING:
    from modules.orders.services.transitions import OrderStatusTransitionService
    from modules.payments.dtos import PaymentWebhookDTO

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"
SIGNATURE_PREFIX = "sha256="


def sign_payload(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> None:
    """Reject the call unless *signature* matches *body*.

    Raises:
        InvalidWebhookSignature: no secret configured, missing header or
            mismatching digest.
    """
    if not secret:
        logger.error("payment.webhook_secret_missing")
        raise InvalidWebhookSignature("Webhook no configurado.")
    if not signature or not hmac.compare_digest(
        sign_payload(body, secret), signature.strip()
    ):
        logger.warning("payment.webhook_signature_invalid")
        raise InvalidWebhookSignature("Firma del webhook inválida.")


class PaymentWebhookService:
    def __init__(self, transitions: OrderStatusTransitionService) -> None:
        self._transitions = transitions

    @transaction.atomic
    def handle(self, dto: PaymentWebhookDTO) -> Dict[str, Any]:
        """Apply a gateway notification.

        Raises:
            OrderNotFound: the order does not exist.
            PaymentNotExpected: the order has no gateway payment method or is
                not awaiting payment.
            OrderStatusNotFound: the approved status is not configured.
            TransitionNotAllowed: the graph forbids the move.
        """
        log = logger.bind(
            order_id=str(dto.order_id),
            payment_id=dto.payment_id,
            payment_status=dto.status,
        )
        result: Dict[str, Any] = {
            "order_id": str(dto.order_id),
            "payment_id": dto.payment_id,
            "status": dto.status,
            "processed": False,
        }

        if not dto.is_approved:
            log.info("payment.webhook_ignored")
            return result

        order = self._transitions.lock_order(dto.order_id)
        approved_code = settings.PAYMENT_APPROVED_STATUS_CODE.strip().upper()
        if order.status.code == approved_code:
            log.info("payment.webhook_duplicate")
            return result

        method = order.payment_method
        if method is None or method.kind != PaymentMethodKind.GATEWAY:
            log.warning("payment.webhook_unexpected", reason="payment_method")
            raise PaymentNotExpected(
                "La orden no tiene un medio de pago por pasarela.", attr="order_id"
            )
        if order.status.code != StatusCode.AWAITING_PAYMENT:
            log.warning("payment.webhook_unexpected", reason="status")
            raise PaymentNotExpected(
                f"La orden está en estado '{order.status.code}' y no espera pago.",
                attr="order_id",
            )

        order = self._transitions.change_status_by_code(
            order.id,
            approved_code,
            notes=f"Pago aprobado con ID {dto.payment_id}",
        )
        log.info("payment.approved", new_status=order.status.code)
        return {**result, "processed": True}
