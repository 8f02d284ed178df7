"""Tests for order numbers and payment references."""
import pytest

from core.domain.value_objects import OrderNumber, PaymentReference


def test_generate_uses_default_prefix():
    assert str(OrderNumber.generate()).startswith("ORD-")
    assert str(PaymentReference.generate()).startswith("PAY-")


def test_generate_with_custom_prefix():
    number = OrderNumber.generate("shop")
    assert number.value.startswith("SHOP-")


@pytest.mark.parametrize("value", ["", "ORD-123-001", "ord-1718203124555-042", "ORD-1718203124555-42"])
def test_invalid_reference_rejected(value):
    with pytest.raises(ValueError):
        OrderNumber(value)


def test_valid_reference_round_trips_through_str():
    assert str(OrderNumber("ORD-1718203124555-042")) == "ORD-1718203124555-042"
