"""Domain layer - pure domain models and interfaces."""

from .entities import Order, OrderItem, Payment
from .enums import OrderStatus, PaymentStatus
from .repositories import OrderRepository, PaymentRepository, UnitOfWork
from .value_objects import Money, OrderNumber, PaymentReference

__all__ = [
    "Money",
    "Order",
    "OrderItem",
    "OrderNumber",
    "OrderRepository",
    "OrderStatus",
    "Payment",
    "PaymentReference",
    "PaymentRepository",
    "PaymentStatus",
    "UnitOfWork",
]
