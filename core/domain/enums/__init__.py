"""Domain enums."""
from .order_status import OrderStatus, TERMINAL_ORDER_STATUSES
from .payment_status import (
    PaymentStatus,
    SINK_PAYMENT_STATUSES,
    SUCCESSFUL_PAYMENT_STATUSES,
)

__all__ = [
    "OrderStatus",
    "PaymentStatus",
    "SINK_PAYMENT_STATUSES",
    "SUCCESSFUL_PAYMENT_STATUSES",
    "TERMINAL_ORDER_STATUSES",
]
