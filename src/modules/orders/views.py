"""Order API views.

Exposes the order use cases via HTTP using DRF ViewSets.  Views only parse
input into DTOs, pick the caller identity and render output; domain errors
propagate to ``modules.core.exceptions.api_exception_handler``.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, BasePermission, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import validate_dto
from modules.core.pagination import StandardResultsSetPagination
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.customers.dtos import build_customer_identity
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.delivery.repositories.django_repository import (
    DeliveryMethodDjangoRepository,
)
from modules.notifications.sinks import CeleryNotificationSink
from modules.orders.dtos import (
    ChangeOrderStatusDTO,
    CreateOrderDTO,
    CreateOrderStatusDTO,
    SelectPaymentMethodDTO,
    UpdateOrderDTO,
    UpdateOrderStatusDTO,
    UpdateTransitionsDTO,
    ValidateTransitionDTO,
)
from modules.orders.exceptions import OrderNotFound
from modules.orders.filters import OrderFilter
from modules.orders.models import Order, OrderStatus
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderStatusDjangoRepository,
)
from modules.orders.serializers import (
    OrderListSerializer,
    OrderSerializer,
    OrderStatusSerializer,
)
from modules.orders.services import (
    OrderCreationService,
    OrderService,
    OrderStatusService,
    OrderStatusTransitionService,
    PaymentMethodSelector,
)
from modules.payments.repositories.django_repository import (
    PaymentMethodDjangoRepository,
)
from modules.products.repositories.django_repository import ProductDjangoRepository

ADMIN_ACTIONS = {"list", "partial_update", "details", "cancel"}


def build_transition_service() -> OrderStatusTransitionService:
    return OrderStatusTransitionService(
        order_repository=OrderDjangoRepository(),
        status_repository=OrderStatusDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


def _owns(user, order: Order) -> bool:
    return user.is_authenticated and order.customer.user_id == user.pk


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses the order services with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__name", "customer__email"]
    ordering_fields = ["created_at", "total", "order_number"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        order_repository = OrderDjangoRepository()
        status_repository = OrderStatusDjangoRepository()
        product_repository = ProductDjangoRepository()
        self._transitions = build_transition_service()
        self._service = OrderService(
            order_repository=order_repository,
            product_repository=product_repository,
        )
        self._creation = OrderCreationService(
            order_repository=order_repository,
            status_repository=status_repository,
            customer_repository=CustomerDjangoRepository(),
            product_repository=product_repository,
            coupon_repository=CouponDjangoRepository(),
            delivery_method_repository=DeliveryMethodDjangoRepository(),
            notification_sink=CeleryNotificationSink(),
        )
        self._payments = PaymentMethodSelector(
            status_repository=status_repository,
            payment_method_repository=PaymentMethodDjangoRepository(),
            transitions=self._transitions,
        )

    def get_permissions(self) -> list[BasePermission]:
        if self.action in ADMIN_ACTIONS:
            return [IsAdminUser()]
        return [AllowAny()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scopes per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Authenticated callers buy as their customer profile; anonymous
        callers must send ``customer_name`` and ``customer_email``.
        """
        user_id = request.user.pk if request.user.is_authenticated else None
        identity = build_customer_identity(
            user_id,
            request.data.get("customer_name"),
            request.data.get("customer_email"),
        )
        dto = validate_dto(CreateOrderDTO, request.data)
        order = self._creation.create_order(dto, identity)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status code, customer, date range, total range) is
        handled by ``OrderFilter``; ordering by ``OrderingFilter``.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/ (staff, or the customer who owns it)."""
        order = self._service.get_order(str(pk))
        if not request.user.is_staff and not _owns(request.user, order):
            raise OrderNotFound(f"Orden {pk} no encontrada.")
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Moves the order to ``status_id`` or ``status_code``.
        """
        dto = validate_dto(ChangeOrderStatusDTO, request.data)
        if dto.status_id:
            order = self._transitions.change_status(
                pk, dto.status_id, notes=dto.notes, user=request.user
            )
        else:
            order = self._transitions.change_status_by_code(
                pk, dto.status_code, notes=dto.notes, user=request.user
            )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels the order and gives its stock back.
        """
        notes = request.data.get("notes", "")
        order = self._transitions.cancel_order(pk, notes=notes, user=request.user)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="payment-method")
    def payment_method(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/payment-method/

        Open to guest checkouts; a registered customer's order only to its
        owner or staff.
        """
        order = self._service.get_order(str(pk))
        user = request.user
        if not user.is_staff and not (order.customer.is_guest or _owns(user, order)):
            raise OrderNotFound(f"Orden {pk} no encontrada.")
        dto = validate_dto(SelectPaymentMethodDTO, request.data)
        order = self._payments.select_payment_method(
            pk, dto.payment_method_code, notes=dto.notes, user=request.user
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Update path
    # ------------------------------------------------------------------

    @action(detail=True, methods=["patch"])
    def details(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/details/"""
        dto = validate_dto(UpdateOrderDTO, request.data)
        order = self._service.update_order(pk, dto)
        return Response(OrderSerializer(order).data)


class OrderStatusViewSet(GenericViewSet):
    """Staff administration of the order status graph."""

    queryset = OrderStatus.objects.all()
    serializer_class = OrderStatusSerializer
    permission_classes = [IsAdminUser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderStatusService(
            status_repository=OrderStatusDjangoRepository()
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/order-statuses/?active=true"""
        active_only = request.query_params.get("active", "").lower() in {"1", "true"}
        statuses = self._service.list_statuses(active_only=active_only)
        return Response(OrderStatusSerializer(statuses, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        status_obj = self._service.get_status(str(pk))
        return Response(OrderStatusSerializer(status_obj).data)

    def create(self, request: Request) -> Response:
        dto = validate_dto(CreateOrderStatusDTO, request.data)
        status_obj = self._service.create_status(dto)
        return Response(
            OrderStatusSerializer(status_obj).data, status=status.HTTP_201_CREATED
        )

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        dto = validate_dto(UpdateOrderStatusDTO, request.data)
        status_obj = self._service.update_status(str(pk), dto)
        return Response(OrderStatusSerializer(status_obj).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        self._service.delete_status(str(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put"])
    def transitions(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/order-statuses/{pk}/transitions/"""
        dto = validate_dto(UpdateTransitionsDTO, request.data)
        status_obj = self._service.replace_transitions(str(pk), dto.can_transition_to)
        return Response(OrderStatusSerializer(status_obj).data)

    @action(detail=True, methods=["post"], url_path="set-default")
    def set_default(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/order-statuses/{pk}/set-default/"""
        status_obj = self._service.set_default(str(pk))
        return Response(OrderStatusSerializer(status_obj).data)

    @action(detail=False, methods=["post"], url_path="validate-transition")
    def validate_transition(self, request: Request) -> Response:
        """POST /api/v1/order-statuses/validate-transition/"""
        dto = validate_dto(ValidateTransitionDTO, request.data)
        allowed = self._service.validate_transition(
            dto.from_status_id, dto.to_status_id
        )
        return Response(
            {
                "from_status_id": str(dto.from_status_id),
                "to_status_id": str(dto.to_status_id),
                "allowed": allowed,
            }
        )
