"""Payment method selection.

Choosing a payment method is a status transition with extra rules:

- only orders in ``PENDING`` or ``CONFIRMED`` may choose a method;
- the next status depends on the method kind (gateway waits for the
  payment, cash and bank transfer confirm the order, anything else stays
  pending);
- cash is limited to local deliveries up to ``CASH_PAYMENT_MAX_AMOUNT``;
- gateways require at least ``GATEWAY_PAYMENT_MIN_AMOUNT``.

The status change itself is delegated to ``OrderStatusTransitionService``
so the graph is consulted exactly as for any other move.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

import structlog
from django.conf import settings
from django.db import transaction

from modules.orders.constants import (
    FALLBACK_PAYMENT_STATUS,
    NEXT_STATUS_BY_PAYMENT_KIND,
    PAYMENT_SELECTABLE_STATUSES,
)
from modules.orders.exceptions import (
    OrderStatusNotFound,
    PaymentMethodNotEligible,
    PaymentNotAllowed,
)
from modules.orders.pricing import format_amount
from modules.payments.exceptions import PaymentMethodInactive, PaymentMethodNotFound
from modules.payments.models import PaymentMethodKind

if TYPE_CHECKING:
    from uuid import UUID

    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderStatusRepository
    from modules.orders.services.transitions import OrderStatusTransitionService
    from modules.payments.models import PaymentMethod
    from modules.payments.repositories.interfaces import IPaymentMethodRepository

logger = structlog.get_logger(__name__)

CASH_NOT_ELIGIBLE_MESSAGE = "Esta orden no es elegible para pago en efectivo"


def is_local_delivery(order: Order) -> bool:
    """Orders without shipping, or shipped to a configured city, are local.

    An empty ``LOCAL_DELIVERY_CITIES`` makes every city local.
    """
    if not order.has_shipping:
        return True
    cities = {city.strip().lower() for city in settings.LOCAL_DELIVERY_CITIES if city}
    if not cities:
        return True
    return (order.shipping_city_name or "").strip().lower() in cities


class PaymentMethodSelector:
    """Attach a payment method to an order and move it to the next status."""

    def __init__(
        self,
        status_repository: IOrderStatusRepository,
        payment_method_repository: IPaymentMethodRepository,
        transitions: OrderStatusTransitionService,
    ) -> None:
        self._status_repo = status_repository
        self._payment_repo = payment_method_repository
        self._transitions = transitions

    @transaction.atomic
    def select_payment_method(
        self,
        order_id: UUID,
        payment_method_code: str,
        notes: Optional[str] = None,
        user: Any = None,
    ) -> Order:
        """Select *payment_method_code* for the order.

        Raises:
            OrderNotFound: the order does not exist.
            PaymentNotAllowed: the order is not pending or confirmed.
            PaymentMethodNotFound: no method has that code.
            PaymentMethodInactive: the method is disabled.
            PaymentMethodNotEligible: cash or gateway limits are not met.
            TransitionNotAllowed: the status graph forbids the next status.
        """
        order = self._transitions.lock_order(order_id)
        code = payment_method_code.strip().upper()
        log = logger.bind(order_id=str(order.id), payment_method=code)

        if order.status.code not in PAYMENT_SELECTABLE_STATUSES:
            raise PaymentNotAllowed(
                "No se puede seleccionar método de pago para una orden en estado: "
                f"{order.status.name}"
            )

        method = self._payment_repo.get_by_code(code)
        if not method:
            raise PaymentMethodNotFound(
                f"Método de pago {code} no encontrado", attr="payment_method_code"
            )
        if not method.is_active:
            raise PaymentMethodInactive(
                f"Método de pago {code} no está activo", attr="payment_method_code"
            )

        self._check_method_rules(order, method)

        next_code = NEXT_STATUS_BY_PAYMENT_KIND.get(
            method.kind, FALLBACK_PAYMENT_STATUS
        )
        target = self._status_repo.get_by_code(next_code)
        if not target:
            raise OrderStatusNotFound(f"Estado {next_code} no configurado.")

        order = self._transitions.apply_transition(
            order,
            target,
            notes=notes or f"Método de pago seleccionado: {method.name}",
            payment_method=method,
            allow_same_status=True,
            user=user,
        )
        log.info("order.payment_method_selected", new_status=target.code)
        return order

    @staticmethod
    def _check_method_rules(order: Order, method: PaymentMethod) -> None:
        total = Decimal(order.total)

        if method.kind == PaymentMethodKind.CASH:
            ceiling = Decimal(str(settings.CASH_PAYMENT_MAX_AMOUNT))
            if total > ceiling or not is_local_delivery(order):
                logger.info(
                    "order.cash_not_eligible",
                    order_id=str(order.id),
                    total=str(total),
                    city=order.shipping_city_name,
                )
                raise PaymentMethodNotEligible(
                    CASH_NOT_ELIGIBLE_MESSAGE, attr="payment_method_code"
                )

        if method.kind == PaymentMethodKind.GATEWAY:
            minimum = Decimal(str(settings.GATEWAY_PAYMENT_MIN_AMOUNT))
            if total < minimum:
                raise PaymentMethodNotEligible(
                    f"El monto mínimo para {method.name} es ${format_amount(minimum)}",
                    attr="payment_method_code",
                )
