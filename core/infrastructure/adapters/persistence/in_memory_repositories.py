"""
In-memory Order and Payment repositories.

Used for tests and local runs without a database. Entities are copied on
the way in and out so callers never share state with the store, and
writes are staged on the unit of work until it commits.
"""
import copy
import logging
from typing import TYPE_CHECKING, Dict, List, Optional, TypeVar

from core.domain.entities import Order, Payment
from core.domain.exceptions import ConcurrencyError, DuplicateKeyError, NotFoundError
from core.domain.repositories import OrderRepository, PaymentRepository

if TYPE_CHECKING:
    from .in_memory_unit_of_work import InMemoryUnitOfWork

logger = logging.getLogger(__name__)

T = TypeVar("T", Order, Payment)


def detach(entity: T) -> T:
    """Deep copy an aggregate without its pending domain events."""
    clone = copy.deepcopy(entity)
    clone.clear_domain_events()
    return clone


class InMemoryStore:
    """
    Committed state shared by every unit of work.

    Holds one dict per aggregate type keyed by id.
    """

    def __init__(self) -> None:
        self.orders: Dict[str, Order] = {}
        self.payments: Dict[str, Payment] = {}
        logger.info("InMemoryStore initialized (in-memory storage)")

    def clear(self) -> None:
        """Clear all orders and payments (for tests)."""
        self.orders.clear()
        self.payments.clear()


def _newest_first(entities):
    return sorted(entities, key=lambda e: e.created_at, reverse=True)


class InMemoryOrderRepository(OrderRepository):
    """In-memory implementation of OrderRepository."""

    def __init__(self, store: InMemoryStore, uow: "InMemoryUnitOfWork"):
        self._store = store
        self._uow = uow

    def _visible(self) -> Dict[str, Order]:
        merged = dict(self._store.orders)
        merged.update(self._uow.staged_orders)
        for order_id in self._uow.deleted_orders:
            merged.pop(order_id, None)
        return merged

    async def add(self, order: Order) -> None:
        number = str(order.order_number)
        if any(str(o.order_number) == number for o in self._visible().values()):
            raise DuplicateKeyError(f"Order number {number} already exists")
        self._uow.staged_orders[order.id] = detach(order)
        self._uow.new_order_ids.add(order.id)

    async def get(self, order_id: str) -> Order:
        order = self._visible().get(order_id)
        if order is None:
            raise NotFoundError("Order", "id", order_id)
        return detach(order)

    async def get_by_number(self, order_number: str) -> Order:
        for order in self._visible().values():
            if str(order.order_number) == order_number:
                return detach(order)
        raise NotFoundError("Order", "number", order_number)

    async def update(self, order: Order) -> None:
        current = self._visible().get(order.id)
        if current is None:
            raise NotFoundError("Order", "id", order.id)
        if current.version != order.version:
            raise ConcurrencyError(
                f"Order {order.order_number} was modified concurrently "
                f"(expected version {order.version}, found {current.version})"
            )
        order.version += 1
        self._uow.staged_orders[order.id] = detach(order)
        self._uow.expected_order_versions.setdefault(order.id, order.version - 1)

    async def delete(self, order_id: str) -> None:
        if order_id not in self._visible():
            raise NotFoundError("Order", "id", order_id)
        self._uow.staged_orders.pop(order_id, None)
        self._uow.deleted_orders.add(order_id)

    async def list(self, limit: int = 100, offset: int = 0) -> List[Order]:
        orders = _newest_first(self._visible().values())
        return [detach(o) for o in orders[offset:offset + limit]]

    async def list_by_user(self, user_id: str, limit: int = 100, offset: int = 0) -> List[Order]:
        orders = _newest_first(o for o in self._visible().values() if o.user_id == user_id)
        return [detach(o) for o in orders[offset:offset + limit]]


class InMemoryPaymentRepository(PaymentRepository):
    """In-memory implementation of PaymentRepository."""

    def __init__(self, store: InMemoryStore, uow: "InMemoryUnitOfWork"):
        self._store = store
        self._uow = uow

    def _visible(self) -> Dict[str, Payment]:
        merged = dict(self._store.payments)
        merged.update(self._uow.staged_payments)
        return merged

    async def add(self, payment: Payment) -> None:
        reference = str(payment.payment_reference)
        if any(str(p.payment_reference) == reference for p in self._visible().values()):
            raise DuplicateKeyError(f"Payment reference {reference} already exists")
        self._uow.staged_payments[payment.id] = detach(payment)
        self._uow.new_payment_ids.add(payment.id)

    async def get(self, payment_id: str) -> Payment:
        payment = self._visible().get(payment_id)
        if payment is None:
            raise NotFoundError("Payment", "id", payment_id)
        return detach(payment)

    async def get_by_reference(self, payment_reference: str) -> Payment:
        for payment in self._visible().values():
            if str(payment.payment_reference) == payment_reference:
                return detach(payment)
        raise NotFoundError("Payment", "reference", payment_reference)

    async def find_by_external_id(self, external_id: str) -> Optional[Payment]:
        for payment in self._visible().values():
            if payment.external_id and payment.external_id == external_id:
                return detach(payment)
        return None

    async def update(self, payment: Payment) -> None:
        current = self._visible().get(payment.id)
        if current is None:
            raise NotFoundError("Payment", "id", payment.id)
        if current.version != payment.version:
            raise ConcurrencyError(
                f"Payment {payment.payment_reference} was modified concurrently "
                f"(expected version {payment.version}, found {current.version})"
            )
        payment.version += 1
        self._uow.staged_payments[payment.id] = detach(payment)
        self._uow.expected_payment_versions.setdefault(payment.id, payment.version - 1)

    async def list(self, limit: int = 100, offset: int = 0) -> List[Payment]:
        payments = _newest_first(self._visible().values())
        return [detach(p) for p in payments[offset:offset + limit]]

    async def list_by_user(self, user_id: str) -> List[Payment]:
        return [detach(p) for p in _newest_first(
            p for p in self._visible().values() if p.user_id == user_id
        )]

    async def list_by_order(self, order_id: str) -> List[Payment]:
        return [detach(p) for p in _newest_first(
            p for p in self._visible().values() if p.order_id == order_id
        )]
