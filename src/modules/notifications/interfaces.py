"""Notification sink contract.

Order creation hands a summary to the sink after the order is committed.
Delivery is best-effort: callers log failures and never roll back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modules.notifications.dtos import OrderNotificationDTO


class INotificationSink(ABC):
    @abstractmethod
    def send_order_notification(self, notification: OrderNotificationDTO) -> None:
        """Deliver (or enqueue) a new-order notification."""
