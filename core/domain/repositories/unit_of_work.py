"""Unit of Work interface.

A payment transition and its mirrored order transition are written
inside one unit of work so callers never observe one without the other.
"""
from abc import ABC, abstractmethod

from .order_repository import OrderRepository
from .payment_repository import PaymentRepository


class UnitOfWork(ABC):
    """
    Transaction scope over the order and payment repositories.

    Usage:
        async with uow_factory() as uow:
            payment = await uow.payments.get(payment_id)
            ...
            await uow.payments.update(payment)
            await uow.orders.update(order)
            await uow.commit()

    Leaving the block without ``commit()`` discards all writes.
    """

    orders: OrderRepository
    payments: PaymentRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        """Commit all pending changes."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard all pending changes (no-op after commit)."""
