"""Coupon domain constants."""

from django.db import models


class DiscountType(models.TextChoices):
    PERCENTAGE = "percentage", "Porcentaje"
    FIXED = "fixed", "Monto fijo"
