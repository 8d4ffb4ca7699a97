from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.coupons.constants import DiscountType
from modules.coupons.models import Coupon
from modules.customers.models import City, Customer, Neighborhood
from modules.delivery.models import DeliveryMethod
from modules.orders.constants import StatusCode
from modules.orders.models import OrderStatus
from modules.payments.models import PaymentMethod, PaymentMethodKind
from modules.products.models import Product, ProductStatus

# code -> (color, successors)
STATUS_GRAPH: dict[str, tuple[str, list[str]]] = {
    StatusCode.PENDING: (
        "#FFC107",
        [StatusCode.AWAITING_PAYMENT, StatusCode.CONFIRMED, StatusCode.CANCELLED],
    ),
    StatusCode.AWAITING_PAYMENT: (
        "#17A2B8",
        [StatusCode.COMPLETED, StatusCode.PENDING, StatusCode.CANCELLED],
    ),
    StatusCode.CONFIRMED: (
        "#007BFF",
        [StatusCode.AWAITING_PAYMENT, StatusCode.PREPARING, StatusCode.CANCELLED],
    ),
    StatusCode.COMPLETED: (
        "#28A745",
        [StatusCode.PREPARING, StatusCode.CANCELLED],
    ),
    StatusCode.PREPARING: (
        "#6F42C1",
        [StatusCode.SHIPPED, StatusCode.CANCELLED],
    ),
    StatusCode.SHIPPED: ("#FD7E14", [StatusCode.DELIVERED]),
    StatusCode.DELIVERED: ("#20C997", [StatusCode.CANCELLED]),
    StatusCode.CANCELLED: ("#DC3545", [StatusCode.PENDING]),
}

PAYMENT_METHODS = [
    ("MERCADO_PAGO", "Mercado Pago", PaymentMethodKind.GATEWAY),
    ("CASH", "Efectivo", PaymentMethodKind.CASH),
    ("BANK_TRANSFER", "Transferencia bancaria", PaymentMethodKind.BANK_TRANSFER),
]

DELIVERY_METHODS = [
    ("PICKUP", "Retiro en tienda", False),
    ("DELIVERY", "Envío a domicilio", True),
]

CITY = "Rosario"
NEIGHBORHOODS = ["Centro", "Pichincha", "Fisherton", "Echesortu", "Alberdi"]

CATALOG = [
    ("ALM-001", "Yerba Mate 1kg", Decimal("3200.00"), Decimal("21.00")),
    ("ALM-002", "Café Molido 500g", Decimal("4500.00"), Decimal("21.00")),
    ("ALM-003", "Dulce de Leche 400g", Decimal("1800.00"), Decimal("10.50")),
    ("ALM-004", "Aceite de Oliva 500ml", Decimal("6900.00"), Decimal("21.00")),
    ("BAZ-001", "Termo Acero 1L", Decimal("25000.00"), Decimal("21.00")),
    ("BAZ-002", "Mate de Calabaza", Decimal("9500.00"), Decimal("21.00")),
    ("BAZ-003", "Bombilla Alpaca", Decimal("7800.00"), Decimal("21.00")),
    ("LIB-001", "Cuaderno A4", Decimal("2500.00"), Decimal("10.50")),
]


class Command(BaseCommand):
    help = "Seed the database with the status graph, catalogs and demo data."

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding development data...")

        statuses = self._seed_statuses()
        payment_methods = self._seed_payment_methods()
        delivery_methods = self._seed_delivery_methods()
        neighborhoods = self._seed_locations()
        products = self._seed_products()
        users = self._seed_users()
        self._seed_coupon()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"statuses={statuses}, "
                f"payment_methods={payment_methods}, "
                f"delivery_methods={delivery_methods}, "
                f"neighborhoods={neighborhoods}, "
                f"products={products}, "
                f"users={users}"
            )
        )

    def _seed_statuses(self) -> int:
        self.stdout.write("Creating order statuses...")
        by_code: dict[str, OrderStatus] = {}
        for position, code in enumerate(STATUS_GRAPH):
            color, _ = STATUS_GRAPH[code]
            status, _ = OrderStatus.objects.update_or_create(
                code=code,
                defaults={
                    "name": StatusCode(code).label,
                    "color": color,
                    "order": position,
                    "is_active": True,
                },
            )
            by_code[code] = status

        # Successors reference rows created above, so they are set afterwards.
        for code, (_, successors) in STATUS_GRAPH.items():
            by_code[code].can_transition_to.set(
                [by_code[target] for target in successors]
            )

        if not OrderStatus.objects.filter(is_default=True).exists():
            by_code[StatusCode.PENDING].mark_as_default()

        self.stdout.write(self.style.SUCCESS("Creating order statuses... Done!"))
        return len(by_code)

    def _seed_payment_methods(self) -> int:
        for code, name, kind in PAYMENT_METHODS:
            PaymentMethod.objects.update_or_create(
                code=code, defaults={"name": name, "kind": kind, "is_active": True}
            )
        return len(PAYMENT_METHODS)

    def _seed_delivery_methods(self) -> int:
        for code, name, requires_address in DELIVERY_METHODS:
            DeliveryMethod.objects.update_or_create(
                code=code,
                defaults={
                    "name": name,
                    "requires_address": requires_address,
                    "is_active": True,
                },
            )
        return len(DELIVERY_METHODS)

    def _seed_locations(self) -> int:
        city, _ = City.objects.get_or_create(name=CITY)
        for name in NEIGHBORHOODS:
            Neighborhood.objects.get_or_create(city=city, name=name)
        return len(NEIGHBORHOODS)

    def _seed_products(self) -> int:
        self.stdout.write("Creating products...")
        for sku, name, price, tax_rate in CATALOG:
            Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "price": price,
                    "tax_rate": tax_rate,
                    "stock_quantity": 50,
                    "status": ProductStatus.ACTIVE,
                },
            )
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return len(CATALOG)

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="cliente").exists():
            user = User.objects.create_user(
                "cliente", email="cliente@example.com", password="cliente123"
            )
            Customer.objects.create(
                user=user, name="Cliente Demo", email="cliente@example.com"
            )
            created += 1
        return created

    def _seed_coupon(self) -> None:
        Coupon.objects.get_or_create(
            code="BIENVENIDA10",
            defaults={
                "discount_type": DiscountType.PERCENTAGE,
                "discount_value": Decimal("10"),
                "description": "10% en la primera compra",
                "min_purchase_amount": Decimal("5000"),
                "usage_limit": 100,
            },
        )
