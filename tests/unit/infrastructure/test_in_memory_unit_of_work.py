"""In-memory persistence: staging, commit, rollback and version checks."""
from decimal import Decimal

import pytest

from core.domain.entities import Order, OrderItem, Payment
from core.domain.enums import OrderStatus, PaymentStatus
from core.domain.exceptions import ConcurrencyError, DuplicateKeyError, NotFoundError
from core.domain.value_objects import OrderNumber, PaymentReference
from core.infrastructure.adapters.persistence import InMemoryStore, InMemoryUnitOfWork


def _order(number=None):
    return Order.create(
        user_id="user-1",
        items=[OrderItem(name="Mug", sku="MUG-1", quantity=1, unit_price=Decimal("25"))],
        order_number=number or OrderNumber.generate(),
    )


def _payment(order_id):
    return Payment.create(
        order_id=order_id,
        user_id="user-1",
        provider="mock",
        amount=Decimal("25"),
        payment_reference=PaymentReference.generate(),
    )


@pytest.fixture
def store():
    return InMemoryStore()


async def _save(store, *entities):
    async with InMemoryUnitOfWork(store) as uow:
        for entity in entities:
            if isinstance(entity, Order):
                await uow.orders.add(entity)
            else:
                await uow.payments.add(entity)
        await uow.commit()


@pytest.mark.asyncio
async def test_uncommitted_writes_are_discarded(store):
    order = _order()
    async with InMemoryUnitOfWork(store) as uow:
        await uow.orders.add(order)
        assert (await uow.orders.get(order.id)).id == order.id

    assert store.orders == {}


@pytest.mark.asyncio
async def test_payment_and_order_commit_together(store):
    order = _order()
    payment = _payment(order.id)
    await _save(store, order, payment)

    async with InMemoryUnitOfWork(store) as uow:
        payment = await uow.payments.get(payment.id)
        order = await uow.orders.get(order.id)
        payment.transition_to(PaymentStatus.AUTHORIZED)
        order.change_status(OrderStatus.PAYMENT_AUTHORIZED)
        await uow.payments.update(payment)
        await uow.orders.update(order)
        assert store.payments[payment.id].status == PaymentStatus.PENDING
        await uow.commit()

    assert store.payments[payment.id].status == PaymentStatus.AUTHORIZED
    assert store.orders[order.id].status == OrderStatus.PAYMENT_AUTHORIZED
    assert store.payments[payment.id].version == 1


@pytest.mark.asyncio
async def test_entities_are_copied_out_of_the_store(store):
    order = _order()
    await _save(store, order)

    async with InMemoryUnitOfWork(store) as uow:
        loaded = await uow.orders.get(order.id)
    loaded.notes = "changed"

    assert store.orders[order.id].notes is None
    assert loaded.get_domain_events() == []


@pytest.mark.asyncio
async def test_stale_update_raises_concurrency_error(store):
    order = _order()
    await _save(store, order)

    async with InMemoryUnitOfWork(store) as first:
        stale = await first.orders.get(order.id)

    async with InMemoryUnitOfWork(store) as second:
        fresh = await second.orders.get(order.id)
        fresh.change_status(OrderStatus.AWAITING_PAYMENT)
        await second.orders.update(fresh)
        await second.commit()

    async with InMemoryUnitOfWork(store) as third:
        stale.change_status(OrderStatus.CANCELLED)
        with pytest.raises(ConcurrencyError):
            await third.orders.update(stale)


@pytest.mark.asyncio
async def test_commit_rechecks_versions(store):
    order = _order()
    await _save(store, order)

    first = InMemoryUnitOfWork(store)
    second = InMemoryUnitOfWork(store)
    a = await first.orders.get(order.id)
    b = await second.orders.get(order.id)
    a.change_status(OrderStatus.AWAITING_PAYMENT)
    b.change_status(OrderStatus.CANCELLED)
    await first.orders.update(a)
    await second.orders.update(b)

    await first.commit()
    with pytest.raises(ConcurrencyError):
        await second.commit()
    assert store.orders[order.id].status == OrderStatus.AWAITING_PAYMENT


@pytest.mark.asyncio
async def test_duplicate_order_number_rejected(store):
    number = OrderNumber.generate()
    await _save(store, _order(number))

    async with InMemoryUnitOfWork(store) as uow:
        with pytest.raises(DuplicateKeyError):
            await uow.orders.add(_order(number))


@pytest.mark.asyncio
async def test_delete_hides_order(store):
    order = _order()
    await _save(store, order)

    async with InMemoryUnitOfWork(store) as uow:
        await uow.orders.delete(order.id)
        await uow.commit()

    async with InMemoryUnitOfWork(store) as uow:
        with pytest.raises(NotFoundError):
            await uow.orders.get(order.id)
        assert await uow.orders.list() == []


@pytest.mark.asyncio
async def test_has_successful_payment(store):
    order = _order()
    failed, authorized = _payment(order.id), _payment(order.id)
    failed.transition_to(PaymentStatus.FAILED)
    await _save(store, order, failed)

    async with InMemoryUnitOfWork(store) as uow:
        assert not await uow.payments.has_successful_payment(order.id)

    authorized.transition_to(PaymentStatus.AUTHORIZED)
    await _save(store, authorized)

    async with InMemoryUnitOfWork(store) as uow:
        assert await uow.payments.has_successful_payment(order.id)
        assert len(await uow.payments.list_by_order(order.id)) == 2


@pytest.mark.asyncio
async def test_find_by_external_id(store):
    order = _order()
    payment = _payment(order.id)
    payment.attach_checkout("https://pay/ext-1", "ext-1")
    await _save(store, order, payment)

    async with InMemoryUnitOfWork(store) as uow:
        assert (await uow.payments.find_by_external_id("ext-1")).id == payment.id
        assert await uow.payments.find_by_external_id("ext-2") is None
