"""Payment DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

APPROVED = "approved"


class PaymentWebhookDTO(BaseModel):
    """Notification sent by the payment gateway for one payment."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    payment_id: str
    status: str

    @field_validator("payment_id", "status")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Campo requerido.")
        return v

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v: str) -> str:
        return v.lower()

    @property
    def is_approved(self) -> bool:
        return self.status == APPROVED
