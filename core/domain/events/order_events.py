"""
Order Domain Events.

Events that occur during the order lifecycle.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .base import DomainEvent


@dataclass
class _OrderEvent(DomainEvent):
    order_id: str = ""
    order_number: str = ""

    def __post_init__(self):
        """Set aggregate_id to order_id."""
        if not self.aggregate_id and self.order_id:
            self.aggregate_id = self.order_id
        super().__post_init__()


@dataclass
class OrderCreatedEvent(_OrderEvent):
    """Order was created with all of its items."""

    total: Decimal = Decimal("0")
    currency: str = ""
    items_count: int = 0


@dataclass
class OrderStatusChangedEvent(_OrderEvent):
    """
    Order status changed.

    Emitted as a side effect of payment transitions.
    """

    previous_status: str = ""
    new_status: str = ""
    reason: Optional[str] = None


@dataclass
class OrderUpdatedEvent(_OrderEvent):
    """Descriptive order fields (notes, addresses, discount code) changed."""

    updated_fields: tuple = ()


@dataclass
class OrderDeletedEvent(_OrderEvent):
    """Order was deleted."""
