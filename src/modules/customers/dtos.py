"""Customer DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``RegisteredIdentity`` / ``GuestIdentity``: who is checking out, decided
  once at the API boundary (``build_customer_identity``).
- ``CreateAddressDTO``: input for the address book.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
)

from modules.customers.constants import PHONE_PATTERN
from shared.domain.errors import InvalidInput


def check_phone(value: str) -> str:
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Formato de teléfono inválido.")
    return value


# ---------------------------------------------------------------------------
# Customer identity (tagged union)
# ---------------------------------------------------------------------------


class RegisteredIdentity(BaseModel):
    """Checkout performed by an authenticated user."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["registered"] = "registered"
    user_id: int


class GuestIdentity(BaseModel):
    """Anonymous checkout identified by contact data."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["guest"] = "guest"
    name: str
    email: EmailStr

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Nombre del cliente requerido para invitados.")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


CustomerIdentity = Annotated[
    Union[RegisteredIdentity, GuestIdentity], Field(discriminator="kind")
]


def build_customer_identity(
    user_id: Optional[int],
    customer_name: Optional[str] = None,
    customer_email: Optional[str] = None,
) -> RegisteredIdentity | GuestIdentity:
    """Decide between registered and guest checkout.

    Raises:
        InvalidInput: guest checkout without a name or with a bad e-mail.
    """
    if user_id is not None:
        return RegisteredIdentity(user_id=user_id)

    if not customer_name or not str(customer_name).strip():
        raise InvalidInput(
            "Nombre del cliente requerido para invitados.", attr="customer_name"
        )
    if not customer_email or not str(customer_email).strip():
        raise InvalidInput(
            "Email del cliente requerido para invitados.", attr="customer_email"
        )
    try:
        return GuestIdentity(name=customer_name, email=customer_email)
    except ValidationError as exc:
        raise InvalidInput(
            "Email del cliente inválido.", attr="customer_email"
        ) from exc


# ---------------------------------------------------------------------------
# Address book
# ---------------------------------------------------------------------------


class CreateAddressDTO(BaseModel):
    """Immutable DTO for address creation requests."""

    model_config = ConfigDict(frozen=True)

    recipient_name: str
    phone: str
    street_address: str
    neighborhood_id: UUID
    postal_code: str = ""
    additional_info: str = ""
    alias: str = ""
    is_default: bool = False

    @field_validator("recipient_name", "street_address")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Campo requerido.")
        return v

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: str) -> str:
        return check_phone(v)


