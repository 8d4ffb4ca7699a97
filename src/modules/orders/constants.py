"""Order domain constants.

Order statuses are data (``OrderStatus`` rows editable by admins), but a
few well-known codes carry behaviour: the payment-selection window, the
status reached per payment kind, cancellation (stock release) and the
terminal statuses that freeze an order.
"""

import re

from django.db import models

from modules.payments.models import PaymentMethodKind


class StatusCode(models.TextChoices):
    PENDING = "PENDING", "Pendiente"
    AWAITING_PAYMENT = "AWAITING_PAYMENT", "Esperando pago"
    CONFIRMED = "CONFIRMED", "Confirmado"
    COMPLETED = "COMPLETED", "Pago completado"
    PREPARING = "PREPARING", "En preparación"
    SHIPPED = "SHIPPED", "Enviado"
    DELIVERED = "DELIVERED", "Entregado"
    CANCELLED = "CANCELLED", "Cancelado"


PAYMENT_SELECTABLE_STATUSES: frozenset[str] = frozenset(
    {StatusCode.PENDING, StatusCode.CONFIRMED}
)

NEXT_STATUS_BY_PAYMENT_KIND: dict[str, str] = {
    PaymentMethodKind.GATEWAY: StatusCode.AWAITING_PAYMENT,
    PaymentMethodKind.CASH: StatusCode.CONFIRMED,
    PaymentMethodKind.BANK_TRANSFER: StatusCode.CONFIRMED,
}

FALLBACK_PAYMENT_STATUS = StatusCode.PENDING

TERMINAL_STATUSES: frozenset[str] = frozenset(
    {StatusCode.DELIVERED, StatusCode.CANCELLED}
)

DEFAULT_STATUS_COLOR = "#6c757d"

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

ORDER_NUMBER_MAX_RETRIES = 5
