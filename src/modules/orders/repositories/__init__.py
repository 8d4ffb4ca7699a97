"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    OrderStatusDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IOrderRepository,
    IOrderStatusRepository,
)

__all__ = [
    "IOrderRepository",
    "IOrderStatusRepository",
    "OrderDjangoRepository",
    "OrderStatusDjangoRepository",
]
