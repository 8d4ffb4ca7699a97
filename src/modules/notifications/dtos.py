"""Notification payloads (Pydantic v2, immutable, JSON-serialisable)."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.orders.models import Order


class NotificationItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class OrderNotificationDTO(BaseModel):
    """Summary of a freshly created order."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    order_number: str
    customer_name: str
    customer_email: str
    is_guest: bool
    total: Decimal
    discount_amount: Decimal
    delivery_method: Optional[str] = None
    shipping_address: Optional[str] = None
    items: List[NotificationItemDTO]

    @classmethod
    def from_entity(cls, order: Order) -> OrderNotificationDTO:
        customer = order.customer
        shipping = None
        if order.has_shipping:
            shipping = (
                f"{order.shipping_street_address}, "
                f"{order.shipping_neighborhood_name}, {order.shipping_city_name}"
            )
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            customer_name=customer.name,
            customer_email=customer.email,
            is_guest=customer.is_guest,
            total=order.total,
            discount_amount=order.discount_amount,
            delivery_method=(
                order.delivery_method.name if order.delivery_method else None
            ),
            shipping_address=shipping,
            items=[
                NotificationItemDTO(
                    product_name=item.product.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in order.items.all()
            ],
        )

    def render_message(self) -> str:
        lines = [
            "🛒 Nueva Orden Recibida!",
            "",
            f"Orden: {self.order_number}",
            f"Cliente: {self.customer_name} ({self.customer_email})"
            + (" [invitado]" if self.is_guest else ""),
        ]
        if self.delivery_method:
            lines.append(f"Entrega: {self.delivery_method}")
        if self.shipping_address:
            lines.append(f"Dirección: {self.shipping_address}")
        lines.append("")
        lines.extend(
            f"- {item.product_name} x{item.quantity}: ${item.subtotal}"
            for item in self.items
        )
        if self.discount_amount:
            lines.append(f"Descuento: -${self.discount_amount}")
        lines.append(f"Total: ${self.total}")
        return "\n".join(lines)
