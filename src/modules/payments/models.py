"""Payment method catalog.

``kind`` drives the order status chosen when a shopper selects the method
(see ``modules.orders.constants.NEXT_STATUS_BY_PAYMENT_KIND``) and the
method-specific guards (cash ceiling, gateway minimum).
"""

from __future__ import annotations

from typing import Any

from django.db import models

from modules.core.models import BaseModel


class PaymentMethodKind(models.TextChoices):
    GATEWAY = "gateway", "Pasarela de pago"
    CASH = "cash", "Efectivo"
    BANK_TRANSFER = "bank_transfer", "Transferencia bancaria"
    OTHER = "other", "Otro"


class PaymentMethod(BaseModel):
    code = models.CharField(max_length=40, unique=True)
    name = models.CharField(max_length=120)
    description = models.CharField(max_length=255, blank=True, default="")
    kind = models.CharField(
        max_length=20,
        choices=PaymentMethodKind.choices,
        default=PaymentMethodKind.OTHER,
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "payment_methods"
        ordering = ["name"]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code} ({self.name})"
