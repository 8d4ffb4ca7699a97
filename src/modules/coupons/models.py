"""Coupon ledger model.

A coupon grants either a percentage of the order subtotal or a fixed
amount.  It applies while active and inside its validity window, until
``times_used`` reaches ``usage_limit`` (``None`` means unlimited).
``min_purchase_amount`` is compared with the order subtotal at base
prices (tax excluded).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.coupons.constants import DiscountType


class Coupon(BaseModel):
    code = models.CharField(max_length=50, unique=True)
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        default=DiscountType.PERCENTAGE,
    )
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    description = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)
    valid_from = models.DateTimeField(null=True, blank=True)
    valid_until = models.DateTimeField(null=True, blank=True)
    min_purchase_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
    )
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    times_used = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "coupons"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_value__gte=0),
                name="coupons_discount_value_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Applicability
    # ------------------------------------------------------------------

    @property
    def is_valid_now(self) -> bool:
        """Active and inside the validity window (open ends allowed)."""
        if not self.is_active:
            return False
        now = timezone.now()
        if self.valid_from and now < self.valid_from:
            return False
        if self.valid_until and now > self.valid_until:
            return False
        return True

    @property
    def is_usage_limit_reached(self) -> bool:
        return self.usage_limit is not None and self.times_used >= self.usage_limit

    # ------------------------------------------------------------------
    # Validation / Persistence
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if (
            self.discount_type == DiscountType.PERCENTAGE
            and self.discount_value is not None
            and self.discount_value > 100
        ):
            raise ValidationError(
                {"discount_value": "El porcentaje no puede superar 100."}
            )
        if self.valid_from and self.valid_until and self.valid_from > self.valid_until:
            raise ValidationError(
                {"valid_until": "La fecha de fin debe ser posterior al inicio."}
            )

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.code
