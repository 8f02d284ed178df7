"""Domain entities (aggregate roots)."""
from .order import Order, OrderItem
from .payment import ORDER_STATUS_BY_PAYMENT_STATUS, Payment

__all__ = ["ORDER_STATUS_BY_PAYMENT_STATUS", "Order", "OrderItem", "Payment"]
