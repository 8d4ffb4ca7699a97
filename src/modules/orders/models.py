"""OrderStatus, Order, OrderItem and OrderStatusHistory models.

Business rules implemented:
- Statuses are data: admins define codes, colors, sort order and the
  allowed successors (``can_transition_to``, stored as ids).  An empty
  successor set means the status may move anywhere.
- At most one status is the default (``SingleDefaultModel`` + partial
  unique constraint); every new order starts there.
- Order totals are always derived from the items plus the stored discount
  input (``discount_type`` / ``discount_value``) via ``recalculate_totals``;
  they are never written by callers.
- OrderItem snapshots the tax-inclusive unit price and the product tax rate;
  its subtotal is always ``quantity * unit_price`` (calculated on save).
- Each status change appends an ``OrderStatusHistory`` record.
- Customer, status and catalog FKs use PROTECT to preserve history.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, SingleDefaultModel
from modules.coupons.constants import DiscountType
from modules.orders.constants import (
    DEFAULT_STATUS_COLOR,
    HEX_COLOR_PATTERN,
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATUSES,
)
from modules.orders.pricing import (
    Discount,
    PricingResult,
    compute_totals,
    line_subtotal,
)

if TYPE_CHECKING:
    from uuid import UUID

logger = structlog.get_logger(__name__)

MONEY = {"max_digits": 12, "decimal_places": 2}


# ---------------------------------------------------------------------------
# OrderStatus
# ---------------------------------------------------------------------------


class OrderStatus(SingleDefaultModel):
    """A node of the order status graph."""

    code = models.CharField(max_length=40, unique=True)
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=255, blank=True, default="")
    color = models.CharField(
        max_length=7,
        default=DEFAULT_STATUS_COLOR,
        validators=[RegexValidator(HEX_COLOR_PATTERN, "Color hexadecimal inválido.")],
    )
    order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    can_transition_to = models.ManyToManyField(
        "self",
        symmetrical=False,
        blank=True,
        related_name="reachable_from",
    )

    class Meta:
        db_table = "order_statuses"
        ordering = ["order", "code"]
        constraints = [
            models.UniqueConstraint(
                fields=["is_default"],
                condition=models.Q(is_default=True),
                name="order_statuses_single_default",
            ),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.code in TERMINAL_STATUSES

    def allowed_transition_ids(self) -> frozenset[UUID]:
        return frozenset(target.id for target in self.can_transition_to.all())

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.code


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier generated on first save
    (``ORD-YYYYMMDD-XXXXXX``); the UUIDv7 ``id`` is used for references.

    Shipping fields are a snapshot taken at checkout: editing or deleting the
    saved address later does not change the order.
    """

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status = models.ForeignKey(
        "orders.OrderStatus",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    payment_method = models.ForeignKey(
        "payments.PaymentMethod",
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    delivery_method = models.ForeignKey(
        "delivery.DeliveryMethod",
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    coupon = models.ForeignKey(
        "coupons.Coupon",
        on_delete=models.SET_NULL,
        related_name="orders",
        null=True,
        blank=True,
    )

    # Pricing (derived; see recalculate_totals)
    subtotal = models.DecimalField(**MONEY, default=Decimal("0.00"), editable=False)
    tax_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    tax_amount = models.DecimalField(**MONEY, default=Decimal("0.00"), editable=False)
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        default=DiscountType.PERCENTAGE,
    )
    discount_value = models.DecimalField(**MONEY, default=Decimal("0.00"))
    discount_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    discount_amount = models.DecimalField(
        **MONEY, default=Decimal("0.00"), editable=False
    )
    total = models.DecimalField(**MONEY, default=Decimal("0.00"), editable=False)

    notes = models.TextField(blank=True, default="")

    # Shipping snapshot
    shipping_recipient_name = models.CharField(max_length=255, blank=True, default="")
    shipping_phone = models.CharField(max_length=20, blank=True, default="")
    shipping_street_address = models.CharField(max_length=255, blank=True, default="")
    shipping_postal_code = models.CharField(max_length=20, blank=True, default="")
    shipping_additional_info = models.CharField(max_length=255, blank=True, default="")
    shipping_neighborhood = models.ForeignKey(
        "customers.Neighborhood",
        on_delete=models.PROTECT,
        related_name="+",
        null=True,
        blank=True,
    )
    shipping_city = models.ForeignKey(
        "customers.City",
        on_delete=models.PROTECT,
        related_name="+",
        null=True,
        blank=True,
    )
    shipping_neighborhood_name = models.CharField(
        max_length=120, blank=True, default=""
    )
    shipping_city_name = models.CharField(max_length=120, blank=True, default="")
    shipping_address = models.ForeignKey(
        "customers.Address",
        on_delete=models.SET_NULL,
        related_name="orders",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="orders_total_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def has_shipping(self) -> bool:
        return bool(self.shipping_street_address)

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    @property
    def discount(self) -> Discount:
        return Discount(self.discount_type, self.discount_value)

    def apply_pricing(self, result: PricingResult) -> None:
        self.subtotal = result.subtotal
        self.tax_rate = result.tax_rate
        self.tax_amount = result.tax_amount
        self.discount_rate = result.discount_rate
        self.discount_amount = result.discount_amount
        self.total = result.total

    def recalculate_totals(self) -> PricingResult:
        """Derive every pricing field from the persisted items and discount."""
        items = OrderItem.objects.filter(order_id=self.pk)
        result = compute_totals(items, self.discount)
        self.apply_pricing(result)
        return result

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status_id})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    ``unit_price`` is the tax-inclusive price agreed at checkout and
    ``tax_rate`` the product rate at that moment; neither follows later
    catalog changes.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price = models.DecimalField(
        **MONEY, validators=[MinValueValidator(Decimal("0"))]
    )
    tax_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00")
    )
    subtotal = models.DecimalField(**MONEY, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=0),
                name="order_items_unit_price_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "La cantidad debe ser al menos 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = line_subtotal(self)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} (${self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail of status changes.

    ``user`` is nullable: ``None`` means the change came from the system
    (checkout, payment webhook).
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.ForeignKey(
        "orders.OrderStatus",
        on_delete=models.PROTECT,
        related_name="+",
        null=True,
        blank=True,
    )
    new_status = models.ForeignKey(
        "orders.OrderStatus",
        on_delete=models.PROTECT,
        related_name="+",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.old_status_id} -> {self.new_status_id}"
