from __future__ import annotations

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.core.management.commands.seed_data import STATUS_GRAPH
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.customers.models import City, Customer, Neighborhood
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.delivery.models import DeliveryMethod
from modules.delivery.repositories.django_repository import (
    DeliveryMethodDjangoRepository,
)
from modules.orders.constants import StatusCode
from modules.orders.models import OrderStatus
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderStatusDjangoRepository,
)
from modules.orders.services import (
    OrderCreationService,
    OrderService,
    OrderStatusService,
    OrderStatusTransitionService,
    PaymentMethodSelector,
)
from modules.payments.models import PaymentMethod, PaymentMethodKind
from modules.payments.repositories.django_repository import (
    PaymentMethodDjangoRepository,
)
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users & customers
# ---------------------------------------------------------------------------


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="staff", password="testpass123", is_staff=True
    )


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def customer_user():
    return User.objects.create_user(
        username="ana", email="ana@example.com", password="testpass123"
    )


@pytest.fixture()
def registered_customer(customer_user):
    return Customer.objects.create(
        user=customer_user, name="Ana Pérez", email="ana@example.com"
    )


@pytest.fixture()
def customer_client(customer_user, registered_customer):
    client = APIClient()
    client.force_authenticate(user=customer_user)
    return client


# ---------------------------------------------------------------------------
# Status graph
# ---------------------------------------------------------------------------


@pytest.fixture()
def statuses() -> dict[str, OrderStatus]:
    """The standard graph: PENDING (default) ... DELIVERED, CANCELLED."""
    by_code = {}
    for position, (code, (color, _)) in enumerate(STATUS_GRAPH.items()):
        by_code[code] = OrderStatus.objects.create(
            code=code,
            name=StatusCode(code).label,
            color=color,
            order=position,
            is_default=code == StatusCode.PENDING,
        )
    for code, (_, successors) in STATUS_GRAPH.items():
        by_code[code].can_transition_to.set(
            [by_code[target] for target in successors]
        )
    return by_code


# ---------------------------------------------------------------------------
# Catalogs
# ---------------------------------------------------------------------------


@pytest.fixture()
def city():
    return City.objects.create(name="Rosario")


@pytest.fixture()
def neighborhood(city):
    return Neighborhood.objects.create(city=city, name="Centro")


@pytest.fixture()
def other_neighborhood():
    other_city = City.objects.create(name="Córdoba")
    return Neighborhood.objects.create(city=other_city, name="Nueva Córdoba")


@pytest.fixture()
def product():
    """Base price 1000, VAT 21 %: sold at 1210."""
    return Product.objects.create(
        sku="YERBA-1KG",
        name="Yerba Mate 1kg",
        price=Decimal("1000.00"),
        tax_rate=Decimal("21.00"),
        stock_quantity=10,
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def cheap_product():
    return Product.objects.create(
        sku="STICKER",
        name="Sticker",
        price=Decimal("20.00"),
        tax_rate=Decimal("0.00"),
        stock_quantity=100,
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def expensive_product():
    return Product.objects.create(
        sku="TERMO-PRO",
        name="Termo Pro",
        price=Decimal("10000.00"),
        tax_rate=Decimal("0.00"),
        stock_quantity=5,
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def pickup():
    return DeliveryMethod.objects.create(
        code="PICKUP", name="Retiro en tienda", requires_address=False
    )


@pytest.fixture()
def home_delivery():
    return DeliveryMethod.objects.create(
        code="DELIVERY", name="Envío a domicilio", requires_address=True
    )


@pytest.fixture()
def payment_methods() -> dict[str, PaymentMethod]:
    return {
        "MERCADO_PAGO": PaymentMethod.objects.create(
            code="MERCADO_PAGO", name="Mercado Pago", kind=PaymentMethodKind.GATEWAY
        ),
        "CASH": PaymentMethod.objects.create(
            code="CASH", name="Efectivo", kind=PaymentMethodKind.CASH
        ),
        "BANK_TRANSFER": PaymentMethod.objects.create(
            code="BANK_TRANSFER",
            name="Transferencia bancaria",
            kind=PaymentMethodKind.BANK_TRANSFER,
        ),
    }


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture()
def transition_service():
    return OrderStatusTransitionService(
        order_repository=OrderDjangoRepository(),
        status_repository=OrderStatusDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def status_service():
    return OrderStatusService(status_repository=OrderStatusDjangoRepository())


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def payment_selector(transition_service):
    return PaymentMethodSelector(
        status_repository=OrderStatusDjangoRepository(),
        payment_method_repository=PaymentMethodDjangoRepository(),
        transitions=transition_service,
    )


@pytest.fixture()
def make_creation_service():
    def factory(notification_sink=None) -> OrderCreationService:
        return OrderCreationService(
            order_repository=OrderDjangoRepository(),
            status_repository=OrderStatusDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            coupon_repository=CouponDjangoRepository(),
            delivery_method_repository=DeliveryMethodDjangoRepository(),
            notification_sink=notification_sink,
        )

    return factory


@pytest.fixture()
def creation_service(make_creation_service):
    return make_creation_service()


@pytest.fixture()
def place_order(creation_service, pickup):
    """Create a pickup order for a guest with the given ``(product, qty)`` lines."""
    from modules.customers.dtos import GuestIdentity
    from modules.orders.dtos import CreateOrderDTO

    def factory(*lines, email="invitado@example.com", **extra):
        dto = CreateOrderDTO(
            items=[
                {
                    "product_id": item.id,
                    "quantity": quantity,
                    "unit_price": item.price_with_tax,
                }
                for item, quantity in lines
            ],
            delivery_method_id=extra.pop("delivery_method_id", pickup.id),
            **extra,
        )
        identity = GuestIdentity(name="Invitado", email=email)
        return creation_service.create_order(dto, identity)

    return factory
