"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (Views) and the Service
layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO`` / ``CreateOrderItemDTO``: checkout input.
- ``UpdateOrderDTO``: notes, shipping contact and item changes.
- ``ChangeOrderStatusDTO`` / ``SelectPaymentMethodDTO``: status moves.
- ``CreateOrderStatusDTO`` / ``UpdateOrderStatusDTO`` /
  ``UpdateTransitionsDTO`` / ``ValidateTransitionDTO``: status graph admin.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.customers.dtos import check_phone
from modules.orders.constants import DEFAULT_STATUS_COLOR, HEX_COLOR_PATTERN

SHIPPING_REQUIRED_FIELDS = (
    "shipping_recipient_name",
    "shipping_phone",
    "shipping_street_address",
    "shipping_neighborhood_id",
)


def _strip_or_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


def _unique_products(items: List[CreateOrderItemDTO]) -> List[CreateOrderItemDTO]:
    if not items:
        raise ValueError("La orden debe tener al menos un producto.")
    product_ids = [item.product_id for item in items]
    if len(product_ids) != len(set(product_ids)):
        raise ValueError("No se permiten productos duplicados en la misma orden.")
    return items


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """One order line.

    ``unit_price`` is the tax-inclusive price shown to the shopper.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    unit_price: Decimal

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("La cantidad debe ser al menos 1.")
        return v

    @field_validator("unit_price")
    @classmethod
    def unit_price_not_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("El precio unitario no puede ser negativo.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for checkout requests.

    Who is buying is not part of this DTO: the view decides a
    ``CustomerIdentity`` once and passes it alongside.

    Validates:
    - at least one item and no duplicated products;
    - ``discount_rate`` between 0 and 100 and never combined with a coupon;
    - a saved address and a new address are mutually exclusive.
    """

    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    notes: str = ""
    coupon_code: Optional[str] = None
    discount_rate: Optional[Decimal] = None
    delivery_method_id: Optional[UUID] = None
    selected_address_id: Optional[UUID] = None
    shipping_recipient_name: Optional[str] = None
    shipping_phone: Optional[str] = None
    shipping_street_address: Optional[str] = None
    shipping_postal_code: Optional[str] = None
    shipping_additional_info: Optional[str] = None
    shipping_neighborhood_id: Optional[UUID] = None
    shipping_city_id: Optional[UUID] = None

    @field_validator("items")
    @classmethod
    def items_must_be_valid(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        return _unique_products(v)

    @field_validator(
        "coupon_code",
        "shipping_recipient_name",
        "shipping_street_address",
        "shipping_postal_code",
        "shipping_additional_info",
    )
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _strip_or_none(v)

    @field_validator("shipping_phone")
    @classmethod
    def phone_format(cls, v: Optional[str]) -> Optional[str]:
        v = _strip_or_none(v)
        return check_phone(v) if v else None

    @field_validator("discount_rate")
    @classmethod
    def discount_rate_range(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and not Decimal("0") <= v <= Decimal("100"):
            raise ValueError("La tasa de descuento debe estar entre 0 y 100.")
        return v

    @model_validator(mode="after")
    def check_combinations(self) -> CreateOrderDTO:
        if self.selected_address_id and self.shipping_street_address:
            raise ValueError(
                "No puedes seleccionar una dirección guardada y proporcionar "
                "una nueva al mismo tiempo."
            )
        if self.coupon_code and self.discount_rate:
            raise ValueError("No se puede combinar un cupón con un descuento manual.")
        return self

    @property
    def has_explicit_address(self) -> bool:
        return any(
            getattr(self, name)
            for name in (*SHIPPING_REQUIRED_FIELDS, "shipping_postal_code")
        )

    def missing_shipping_fields(self) -> List[str]:
        return [name for name in SHIPPING_REQUIRED_FIELDS if not getattr(self, name)]


# ---------------------------------------------------------------------------
# Update path
# ---------------------------------------------------------------------------


class UpdateOrderDTO(BaseModel):
    """Changes allowed on a non-terminal order.  ``None`` means "keep"."""

    model_config = ConfigDict(frozen=True)

    notes: Optional[str] = None
    items: Optional[List[CreateOrderItemDTO]] = None
    shipping_recipient_name: Optional[str] = None
    shipping_phone: Optional[str] = None
    shipping_street_address: Optional[str] = None
    shipping_postal_code: Optional[str] = None
    shipping_additional_info: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_be_valid(
        cls, v: Optional[List[CreateOrderItemDTO]]
    ) -> Optional[List[CreateOrderItemDTO]]:
        return None if v is None else _unique_products(v)

    @field_validator("shipping_phone")
    @classmethod
    def phone_format(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else check_phone(v)

    def shipping_changes(self) -> dict[str, str]:
        fields = (
            "shipping_recipient_name",
            "shipping_phone",
            "shipping_street_address",
            "shipping_postal_code",
            "shipping_additional_info",
        )
        return {
            name: getattr(self, name)
            for name in fields
            if getattr(self, name) is not None
        }


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------


class ChangeOrderStatusDTO(BaseModel):
    """Target status given either by id or by code (exactly one)."""

    model_config = ConfigDict(frozen=True)

    status_id: Optional[UUID] = None
    status_code: Optional[str] = None
    notes: str = ""

    @model_validator(mode="after")
    def exactly_one_target(self) -> ChangeOrderStatusDTO:
        if bool(self.status_id) == bool(self.status_code):
            raise ValueError("Indica 'status_id' o 'status_code'.")
        return self


class SelectPaymentMethodDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_method_code: str
    notes: Optional[str] = None

    @field_validator("payment_method_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("El código del método de pago es requerido.")
        return v


# ---------------------------------------------------------------------------
# Status graph administration
# ---------------------------------------------------------------------------


def _normalize_status_code(v: str) -> str:
    v = v.strip().upper()
    if len(v) < 2:
        raise ValueError("El código debe tener al menos 2 caracteres.")
    return v


def _check_name(v: str) -> str:
    v = v.strip()
    if len(v) < 2:
        raise ValueError("El nombre debe tener al menos 2 caracteres.")
    return v


def _check_color(v: str) -> str:
    if not HEX_COLOR_PATTERN.match(v):
        raise ValueError("El color debe ser un valor hexadecimal válido (#RRGGBB).")
    return v.upper()


class CreateOrderStatusDTO(BaseModel):
    """Immutable DTO for status creation.

    ``can_transition_to`` accepts ids or codes of existing statuses; they
    are resolved to ids before anything is written.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    description: str = ""
    color: str = DEFAULT_STATUS_COLOR
    order: int = 0
    is_active: bool = True
    is_default: bool = False
    can_transition_to: List[str] = []

    @field_validator("code")
    @classmethod
    def code_format(cls, v: str) -> str:
        return _normalize_status_code(v)

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("color")
    @classmethod
    def color_format(cls, v: str) -> str:
        return _check_color(v)

    @field_validator("order")
    @classmethod
    def order_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("El orden debe ser mayor o igual a 0.")
        return v


class UpdateOrderStatusDTO(BaseModel):
    """Partial update; ``None`` fields are left untouched."""

    model_config = ConfigDict(frozen=True)

    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    can_transition_to: Optional[List[str]] = None

    @field_validator("code")
    @classmethod
    def code_format(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _normalize_status_code(v)

    @field_validator("name")
    @classmethod
    def name_length(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_name(v)

    @field_validator("color")
    @classmethod
    def color_format(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_color(v)

    @field_validator("order")
    @classmethod
    def order_not_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("El orden debe ser mayor o igual a 0.")
        return v


class UpdateTransitionsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    can_transition_to: List[str]


class ValidateTransitionDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_status_id: UUID
    to_status_id: UUID
