"""Delivery method catalog.

``requires_address`` decides whether checkout must resolve a shipping
address (home delivery) or may skip it entirely (store pickup).
"""

from __future__ import annotations

from typing import Any

from django.db import models

from modules.core.models import BaseModel


class DeliveryMethod(BaseModel):
    code = models.CharField(max_length=40, unique=True)
    name = models.CharField(max_length=120)
    description = models.CharField(max_length=255, blank=True, default="")
    requires_address = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "delivery_methods"
        ordering = ["name"]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.name
