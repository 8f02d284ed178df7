"""
Order Status Enum.

Lifecycle states of an Order.
"""
from enum import Enum


class OrderStatus(str, Enum):
    """Order status values."""

    PENDING = "pending"
    AWAITING_PAYMENT = "awaiting_payment"
    PAYMENT_AUTHORIZED = "payment_authorized"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"

    @property
    def is_terminal(self) -> bool:
        """No payment may be started from a terminal order."""
        return self in TERMINAL_ORDER_STATUSES


TERMINAL_ORDER_STATUSES = frozenset({
    OrderStatus.CANCELLED,
    OrderStatus.COMPLETED,
    OrderStatus.REFUNDED,
})
