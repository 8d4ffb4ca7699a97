"""Order creation (checkout) use case.

``OrderCreationService.create_order`` composes the checkout steps inside a
single transaction:

1. resolve the default order status;
2. resolve the customer (registered or guest);
3. resolve the delivery method and the shipping snapshot;
4. lock, check and deduct stock for every line (PK order);
5. validate the coupon, or take the manual discount rate;
6. persist the order with its items and derived totals;
7. consume one coupon use (conditional, never past the limit);
8. append the initial status history record.

After the transaction the order summary is handed to the notification
sink.  Notification failures are logged and never undo the order.

Domain errors propagate unchanged; anything unexpected is wrapped in
``OrderCreationFailed`` ("Error al crear la venta: <cause>").
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.coupons.exceptions import CouponNotApplicable
from modules.coupons.services import CouponValidator
from modules.delivery.exceptions import DeliveryMethodInactive, DeliveryMethodNotFound
from modules.notifications.dtos import OrderNotificationDTO
from modules.orders.exceptions import DefaultStatusMissing, OrderCreationFailed
from modules.orders.pricing import Discount
from modules.orders.services.customer_resolution import CustomerResolver
from modules.orders.services.stock import reserve_lines
from shared.domain.errors import DomainError

if TYPE_CHECKING:
    from modules.coupons.repositories.interfaces import ICouponRepository
    from modules.customers.dtos import CustomerIdentity
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.delivery.models import DeliveryMethod
    from modules.delivery.repositories.interfaces import IDeliveryMethodRepository
    from modules.notifications.interfaces import INotificationSink
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import (
        IOrderRepository,
        IOrderStatusRepository,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderCreationService:
    """Application service for checkout.

    Receives repositories and the notification sink via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        status_repository: IOrderStatusRepository,
        customer_repository: ICustomerRepository,
        product_repository: IProductRepository,
        coupon_repository: ICouponRepository,
        delivery_method_repository: IDeliveryMethodRepository,
        notification_sink: Optional[INotificationSink] = None,
    ) -> None:
        self._order_repo = order_repository
        self._status_repo = status_repository
        self._product_repo = product_repository
        self._coupon_repo = coupon_repository
        self._delivery_repo = delivery_method_repository
        self._notification_sink = notification_sink
        self._customers = CustomerResolver(customer_repository)
        self._coupons = CouponValidator(coupon_repository, product_repository)

    def create_order(self, dto: CreateOrderDTO, identity: CustomerIdentity) -> Order:
        """Create an order for *identity* from *dto*.

        Raises:
            DefaultStatusMissing: no default order status is configured.
            CustomerProfileMissing / EmailAlreadyRegistered: customer errors.
            DeliveryMethodNotFound / DeliveryMethodInactive: bad delivery method.
            InvalidOrderData / InvalidAddress / AddressNotFound: address errors.
            ProductNotFound / ProductUnavailable / InsufficientStock: items.
            InvalidCoupon / CouponNotApplicable: coupon errors.
            OrderCreationFailed: any unexpected failure.
        """
        log = logger.bind(customer_kind=identity.kind, item_count=len(dto.items))
        log.info("order.creation_started")

        try:
            order = self._create(dto, identity)
        except DomainError as exc:
            log.info("order.creation_rejected", error=type(exc).__name__)
            raise
        except Exception as exc:
            log.error("order.creation_failed", exc_info=True)
            raise OrderCreationFailed(f"Error al crear la venta: {exc}") from exc

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total),
        )
        self._notify(order)
        return order

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    @transaction.atomic
    def _create(self, dto: CreateOrderDTO, identity: CustomerIdentity) -> Order:
        default_status = self._status_repo.get_default()
        if not default_status:
            raise DefaultStatusMissing(
                "No hay un estado de orden por defecto configurado."
            )

        customer = self._customers.resolve_customer(identity)
        delivery_method = self._resolve_delivery_method(dto.delivery_method_id)
        shipping = self._customers.resolve_shipping(
            customer, dto, delivery_method, is_guest=identity.kind == "guest"
        )

        lines = reserve_lines(self._product_repo, dto.items)

        coupon = None
        discount = Discount.rate(dto.discount_rate or 0)
        if dto.coupon_code:
            application = self._coupons.validate(dto.coupon_code, dto.items)
            coupon = application.coupon
            discount = application.discount

        order = self._order_repo.create(
            {
                "customer_id": customer.id,
                "status_id": default_status.id,
                "delivery_method_id": delivery_method.id if delivery_method else None,
                "coupon_id": coupon.id if coupon else None,
                "discount": discount,
                "notes": dto.notes,
                "items": lines,
                "shipping": shipping,
            }
        )

        if coupon and not self._coupon_repo.increment_usage(coupon.id):
            # Another checkout consumed the last use after validation.
            raise CouponNotApplicable(
                f"Cupón '{coupon.code}' no aplicable.", attr="coupon_code"
            )

        self._order_repo.add_history(order, default_status, notes="Orden creada")
        return self._order_repo.get_by_id(str(order.id)) or order

    def _resolve_delivery_method(
        self, delivery_method_id: Optional[UUID]
    ) -> Optional[DeliveryMethod]:
        if delivery_method_id is None:
            return None
        method = self._delivery_repo.get_by_id(str(delivery_method_id))
        if not method:
            raise DeliveryMethodNotFound(
                f"Método de entrega {delivery_method_id} no encontrado.",
                attr="delivery_method_id",
            )
        if not method.is_active:
            raise DeliveryMethodInactive(
                f"Método de entrega {method.name} no está activo.",
                attr="delivery_method_id",
            )
        return method

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def _notify(self, order: Order) -> None:
        if self._notification_sink is None:
            return
        try:
            self._notification_sink.send_order_notification(
                OrderNotificationDTO.from_entity(order)
            )
        except Exception:
            logger.warning(
                "order.notification_failed",
                order_id=str(order.id),
                exc_info=True,
            )
