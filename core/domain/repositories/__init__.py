"""Repository and unit-of-work ports."""
from .order_repository import OrderRepository
from .payment_repository import PaymentRepository
from .unit_of_work import UnitOfWork

__all__ = ["OrderRepository", "PaymentRepository", "UnitOfWork"]
