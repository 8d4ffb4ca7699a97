"""Order use cases."""

from modules.orders.services.creation import OrderCreationService
from modules.orders.services.customer_resolution import CustomerResolver
from modules.orders.services.order_service import OrderService
from modules.orders.services.payment_selection import PaymentMethodSelector
from modules.orders.services.status_graph import OrderStatusGraph, StatusId
from modules.orders.services.status_service import OrderStatusService
from modules.orders.services.transitions import OrderStatusTransitionService

__all__ = [
    "CustomerResolver",
    "OrderCreationService",
    "OrderService",
    "OrderStatusGraph",
    "OrderStatusService",
    "OrderStatusTransitionService",
    "PaymentMethodSelector",
    "StatusId",
]
