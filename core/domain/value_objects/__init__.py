"""Domain value objects."""

from .value_objects import CENT, DEFAULT_CURRENCY, Money
from .order_number import OrderNumber, PaymentReference

__all__ = [
    "CENT",
    "DEFAULT_CURRENCY",
    "Money",
    "OrderNumber",
    "PaymentReference",
]
