"""Tests for the Order aggregate."""
from decimal import Decimal

import pytest

from core.domain.entities import Order, OrderItem
from core.domain.enums import OrderStatus
from core.domain.events import OrderCreatedEvent, OrderStatusChangedEvent, OrderUpdatedEvent
from core.domain.exceptions import ValidationError
from core.domain.value_objects import OrderNumber


def _items():
    return [
        OrderItem(name="Desk Lamp", sku="LAMP-001", quantity=2,
                  unit_price=Decimal("100"), discount_amount=Decimal("10")),
        OrderItem(name="Bulb", sku="BULB-001", quantity=4, unit_price=Decimal("7.25")),
    ]


def _create(**kwargs):
    return Order.create(
        user_id="user-1",
        items=kwargs.pop("items", _items()),
        order_number=OrderNumber.generate(),
        **kwargs,
    )


def test_create_computes_totals_and_line_totals():
    order = _create(discount=Decimal("9"), tax=Decimal("33"), shipping=Decimal("15"))

    assert order.status == OrderStatus.PENDING
    assert [item.total for item in order.items] == [Decimal("190.00"), Decimal("29.00")]
    assert order.subtotal == Decimal("219.00")
    assert order.total == Decimal("258.00")
    assert order.total == order.subtotal - order.discount + order.tax + order.shipping


def test_create_without_items_fails():
    with pytest.raises(ValidationError, match="at least one item"):
        _create(items=[])


def test_create_uppercases_currency():
    assert _create(currency="usd").currency == "USD"


def test_create_records_created_event():
    order = _create()

    events = order.get_domain_events()
    assert len(events) == 1
    assert isinstance(events[0], OrderCreatedEvent)
    assert events[0].aggregate_id == order.id
    assert events[0].items_count == 2


def test_item_requires_name_and_sku():
    with pytest.raises(ValidationError):
        OrderItem(name="", sku="SKU", quantity=1, unit_price=Decimal("1"))
    with pytest.raises(ValidationError):
        OrderItem(name="Name", sku="", quantity=1, unit_price=Decimal("1"))


def test_change_status_records_event_only_on_change():
    order = _create()
    order.clear_domain_events()

    assert order.change_status(OrderStatus.AWAITING_PAYMENT, reason="payment created")
    assert not order.change_status(OrderStatus.AWAITING_PAYMENT)

    events = order.get_domain_events()
    assert len(events) == 1
    assert isinstance(events[0], OrderStatusChangedEvent)
    assert events[0].previous_status == "pending"
    assert events[0].new_status == "awaiting_payment"


def test_update_details_only_touches_descriptive_fields():
    order = _create()
    order.clear_domain_events()
    total = order.total

    changed = order.update_details(notes="Leave at door", shipping_address=None)

    assert changed == ["notes"]
    assert order.notes == "Leave at door"
    assert order.total == total
    assert isinstance(order.get_domain_events()[0], OrderUpdatedEvent)


def test_update_details_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        _create().update_details(total="0")
