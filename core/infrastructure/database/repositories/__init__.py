"""SQLAlchemy repository implementations."""
from .sqlalchemy_order_repository import SQLAlchemyOrderRepository
from .sqlalchemy_payment_repository import SQLAlchemyPaymentRepository

__all__ = ["SQLAlchemyOrderRepository", "SQLAlchemyPaymentRepository"]
