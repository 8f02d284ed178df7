"""Domain events collected by aggregates and published after commit."""
from .base import DomainEvent
from .order_events import (
    OrderCreatedEvent,
    OrderDeletedEvent,
    OrderStatusChangedEvent,
    OrderUpdatedEvent,
)
from .payment_events import (
    PaymentCreatedEvent,
    PaymentFailedEvent,
    PaymentStatusChangedEvent,
)

__all__ = [
    "DomainEvent",
    "OrderCreatedEvent",
    "OrderDeletedEvent",
    "OrderStatusChangedEvent",
    "OrderUpdatedEvent",
    "PaymentCreatedEvent",
    "PaymentFailedEvent",
    "PaymentStatusChangedEvent",
]
