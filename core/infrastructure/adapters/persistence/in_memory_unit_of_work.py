"""
In-memory Unit of Work.

Writes are staged per unit of work and applied to the shared store in one
step on commit, after re-checking every version the unit of work relied on.
"""
import logging
from typing import Dict, Set

from core.domain.entities import Order, Payment
from core.domain.exceptions import ConcurrencyError, DuplicateKeyError
from core.domain.repositories import UnitOfWork

from .in_memory_repositories import (
    InMemoryOrderRepository,
    InMemoryPaymentRepository,
    InMemoryStore,
)

logger = logging.getLogger(__name__)


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work over an InMemoryStore.

    Usage:
        store = InMemoryStore()
        async with InMemoryUnitOfWork(store) as uow:
            order = await uow.orders.get(order_id)
            ...
            await uow.commit()
    """

    def __init__(self, store: InMemoryStore):
        self._store = store
        self._committed = False
        self.staged_orders: Dict[str, Order] = {}
        self.staged_payments: Dict[str, Payment] = {}
        self.deleted_orders: Set[str] = set()
        self.new_order_ids: Set[str] = set()
        self.new_payment_ids: Set[str] = set()
        self.expected_order_versions: Dict[str, int] = {}
        self.expected_payment_versions: Dict[str, int] = {}
        self.orders = InMemoryOrderRepository(store, self)
        self.payments = InMemoryPaymentRepository(store, self)

    async def commit(self) -> None:
        # No awaits below: the whole commit is atomic for other coroutines
        self._check_versions(self._store.orders, self.expected_order_versions, self.new_order_ids, "Order")
        self._check_versions(self._store.payments, self.expected_payment_versions, self.new_payment_ids, "Payment")
        self._check_unique()

        self._store.orders.update(self.staged_orders)
        for order_id in self.deleted_orders:
            self._store.orders.pop(order_id, None)
        self._store.payments.update(self.staged_payments)

        self._committed = True
        self._reset()
        logger.debug("In-memory transaction committed")

    async def rollback(self) -> None:
        if self._committed:
            return
        if self.staged_orders or self.staged_payments or self.deleted_orders:
            logger.debug("In-memory transaction rolled back")
        self._reset()

    def _reset(self) -> None:
        self.staged_orders.clear()
        self.staged_payments.clear()
        self.deleted_orders.clear()
        self.new_order_ids.clear()
        self.new_payment_ids.clear()
        self.expected_order_versions.clear()
        self.expected_payment_versions.clear()

    @staticmethod
    def _check_versions(committed, expected, new_ids, entity: str) -> None:
        for entity_id, version in expected.items():
            if entity_id in new_ids:
                continue
            current = committed.get(entity_id)
            if current is None or current.version != version:
                raise ConcurrencyError(f"{entity} {entity_id} was modified concurrently")

    def _check_unique(self) -> None:
        numbers = {str(o.order_number) for o in self._store.orders.values()}
        for order_id in self.new_order_ids:
            order = self.staged_orders.get(order_id)
            if order is not None and str(order.order_number) in numbers:
                raise DuplicateKeyError(f"Order number {order.order_number} already exists")

        references = {str(p.payment_reference) for p in self._store.payments.values()}
        for payment_id in self.new_payment_ids:
            payment = self.staged_payments.get(payment_id)
            if payment is not None and str(payment.payment_reference) in references:
                raise DuplicateKeyError(f"Payment reference {payment.payment_reference} already exists")
