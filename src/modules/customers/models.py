"""Customer, address book and locality models.

Business rules implemented:
- A customer is either registered (``user`` set) or a guest (``user`` null).
- Email is not unique: the same guest address may check out many times and
  a guest record may share an email with a later registered account.
- Every address belongs to exactly one customer and references a
  neighborhood; its city is always the neighborhood's city.
- At most one address per customer is the default (``SingleDefaultModel``
  plus a partial unique constraint).
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import BaseModel, SingleDefaultModel
from modules.customers.constants import PHONE_PATTERN


def validate_phone(value: str) -> None:
    if value and not PHONE_PATTERN.match(value):
        raise ValidationError("Formato de teléfono inválido.")


# ---------------------------------------------------------------------------
# Localities
# ---------------------------------------------------------------------------


class City(BaseModel):
    name = models.CharField(max_length=120, unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "cities"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Neighborhood(BaseModel):
    name = models.CharField(max_length=120)
    city = models.ForeignKey(
        "customers.City",
        on_delete=models.PROTECT,
        related_name="neighborhoods",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "neighborhoods"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["city", "name"],
                name="neighborhoods_unique_name_per_city",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.city})"


# ---------------------------------------------------------------------------
# Customer
# ---------------------------------------------------------------------------


class Customer(BaseModel):
    """Customer aggregate root.

    ``user`` links the record to an authenticated account.  Guest customers
    are created on the fly by checkout and never carry a user.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="customer",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, db_index=True)
    phone = models.CharField(
        max_length=20, blank=True, default="", validators=[validate_phone]
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
        ]

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        kind = "guest" if self.is_guest else "registered"
        return f"{self.name} ({kind})"


# ---------------------------------------------------------------------------
# Address
# ---------------------------------------------------------------------------


class Address(SingleDefaultModel):
    """Saved shipping address of a customer."""

    default_scope = ("customer_id",)

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="addresses",
    )
    recipient_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, validators=[validate_phone])
    street_address = models.CharField(max_length=255)
    neighborhood = models.ForeignKey(
        "customers.Neighborhood",
        on_delete=models.PROTECT,
        related_name="addresses",
    )
    city = models.ForeignKey(
        "customers.City",
        on_delete=models.PROTECT,
        related_name="addresses",
    )
    postal_code = models.CharField(max_length=20, blank=True, default="")
    additional_info = models.CharField(max_length=255, blank=True, default="")
    alias = models.CharField(max_length=60, blank=True, default="")

    class Meta:
        db_table = "addresses"
        ordering = ["-is_default", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["customer"],
                condition=models.Q(is_default=True),
                name="addresses_single_default_per_customer",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.neighborhood_id and not self.city_id:
            self.city_id = self.neighborhood.city_id
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        label = self.alias or self.street_address
        return f"{label} - {self.neighborhood.name}"
