"""Order application service tests (in-memory persistence)."""
from decimal import Decimal

import pytest

from core.application.dtos import CreatePaymentRequest, UpdateOrderRequest
from core.application.services import OrderApplicationService
from core.domain.enums import OrderStatus
from core.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from core.domain.value_objects import OrderNumber
from tests.conftest import OTHER_USER_ID, USER_ID


@pytest.mark.asyncio
async def test_create_order_computes_totals(order_service, order_request):
    order = await order_service.create_order(USER_ID, order_request)

    assert order.status == OrderStatus.PENDING
    assert order.subtotal == Decimal("190.00")
    assert order.total == Decimal("190.00")
    assert order.currency == "SAR"
    assert order.order_number.startswith("ORD-")
    assert order.items[0].total == Decimal("190.00")


@pytest.mark.asyncio
async def test_create_order_publishes_created_event(order_service, order_request, event_bus):
    order = await order_service.create_order(USER_ID, order_request)

    events = event_bus.recent_events("OrderCreatedEvent")
    assert [e.aggregate_id for e in events] == [order.id]


@pytest.mark.asyncio
async def test_create_order_without_items_is_rejected(order_service, order_request, store):
    request = order_request.model_copy(update={"items": []})

    with pytest.raises(ValidationError):
        await order_service.create_order(USER_ID, request)
    assert store.orders == {}


@pytest.mark.asyncio
async def test_create_order_uses_default_currency(uow_factory, order_request):
    service = OrderApplicationService(uow_factory, default_currency="USD")
    order = await service.create_order(USER_ID, order_request.model_copy(update={"currency": None}))

    assert order.currency == "USD"


@pytest.mark.asyncio
async def test_order_number_collision_is_retried(order_service, order_request, monkeypatch):
    first = await order_service.create_order(USER_ID, order_request)
    numbers = iter([first.order_number, "ORD-1718203124555-042"])
    monkeypatch.setattr(OrderNumber, "generate", classmethod(lambda cls, prefix=None: cls(next(numbers))))

    second = await order_service.create_order(USER_ID, order_request)

    assert second.order_number == "ORD-1718203124555-042"


@pytest.mark.asyncio
async def test_order_number_collisions_exhaust_attempts(order_service, order_request, monkeypatch):
    first = await order_service.create_order(USER_ID, order_request)
    monkeypatch.setattr(
        OrderNumber, "generate", classmethod(lambda cls, prefix=None: cls(first.order_number))
    )

    with pytest.raises(ConflictError, match="unique order number"):
        await order_service.create_order(USER_ID, order_request)


@pytest.mark.asyncio
async def test_get_order_by_id_and_number(order_service, order):
    by_id = await order_service.get_order(order.id)
    by_number = await order_service.get_order_by_number(order.order_number)

    assert by_id == by_number == order


@pytest.mark.asyncio
async def test_get_missing_order_raises_not_found(order_service):
    with pytest.raises(NotFoundError):
        await order_service.get_order("missing")


@pytest.mark.asyncio
async def test_list_user_orders_only_returns_own(order_service, order_request):
    await order_service.create_order(USER_ID, order_request)
    await order_service.create_order(USER_ID, order_request)
    await order_service.create_order(OTHER_USER_ID, order_request)

    mine = await order_service.list_user_orders(USER_ID)
    everything = await order_service.list_orders()

    assert mine.total == 2
    assert {o.user_id for o in mine.orders} == {USER_ID}
    assert everything.total == 3


@pytest.mark.asyncio
async def test_update_order_details(order_service, order):
    updated = await order_service.update_order(
        order.id, UpdateOrderRequest(notes="Ring twice"), user_id=USER_ID
    )

    assert updated.notes == "Ring twice"
    assert updated.total == order.total


@pytest.mark.asyncio
async def test_update_order_of_other_user_is_forbidden(order_service, order):
    with pytest.raises(AuthorizationError):
        await order_service.update_order(order.id, UpdateOrderRequest(notes="x"), user_id=OTHER_USER_ID)


@pytest.mark.asyncio
async def test_update_status_overwrites_and_records_reason(order_service, order, event_bus):
    await order_service.update_status(order.id, OrderStatus.COMPLETED, reason="delivered")

    stored = await order_service.get_order(order.id)
    assert stored.status == OrderStatus.COMPLETED
    changed = event_bus.recent_events("OrderStatusChangedEvent")[-1]
    assert changed.reason == "delivered"


@pytest.mark.asyncio
async def test_delete_order_without_payments(order_service, order):
    await order_service.delete_order(order.id, user_id=USER_ID)

    with pytest.raises(NotFoundError):
        await order_service.get_order(order.id)


@pytest.mark.asyncio
async def test_delete_order_of_other_user_is_forbidden(order_service, order):
    with pytest.raises(AuthorizationError):
        await order_service.delete_order(order.id, user_id=OTHER_USER_ID)


@pytest.mark.asyncio
async def test_delete_order_with_pending_payment_is_allowed(order_service, payment):
    await order_service.delete_order(payment.order_id, user_id=USER_ID)


@pytest.mark.asyncio
async def test_delete_order_with_successful_payment_conflicts(order_service, payment_service, payment):
    await payment_service.authorize_payment(payment.id)

    with pytest.raises(ConflictError):
        await order_service.delete_order(payment.order_id, user_id=USER_ID)
    assert (await order_service.get_order(payment.order_id)).status == OrderStatus.PAYMENT_AUTHORIZED


@pytest.mark.asyncio
async def test_terminal_order_cannot_be_paid(order_service, payment_service, order):
    await order_service.update_status(order.id, OrderStatus.CANCELLED)

    with pytest.raises(InvalidStateError):
        await payment_service.create_payment(
            USER_ID, CreatePaymentRequest(order_id=order.id, provider="mock", amount=Decimal("190"))
        )
