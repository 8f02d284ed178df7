"""
Order totals calculator.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi

Balance equations (MUST ALWAYS HOLD):
    line.total = quantity * unit_price - discount_amount
    subtotal   = sum(line.total)
    total      = subtotal - discount + tax + shipping

Every input is rounded half-up to the minor unit before summing, so the
equations hold exactly on the rounded values.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol, Union

from .exceptions import ValidationError
from .value_objects import DEFAULT_CURRENCY, Money

Amount = Union[Decimal, int, str]


class PricedLine(Protocol):
    quantity: int
    unit_price: Decimal
    discount_amount: Decimal


@dataclass(frozen=True)
class OrderTotals:
    """Computed monetary fields of an order."""
    subtotal: Money
    discount: Money
    tax: Money
    shipping: Money
    total: Money


def _money(value: Amount, currency: str, label: str) -> Money:
    money = Money(amount=value or Decimal("0"), currency=currency).rounded()
    if money.is_negative():
        raise ValidationError(f"{label} cannot be negative: {money}")
    return money


def line_total(
    quantity: int,
    unit_price: Amount,
    discount_amount: Amount = Decimal("0"),
    currency: str = DEFAULT_CURRENCY,
) -> Money:
    """Compute ``quantity * unit_price - discount_amount`` for one line."""
    if quantity < 1:
        raise ValidationError(f"Item quantity must be at least 1, got {quantity}")
    price = _money(unit_price, currency, "Unit price")
    if not price.is_positive():
        raise ValidationError(f"Unit price must be greater than zero, got {price}")
    discount = _money(discount_amount, currency, "Item discount")

    total = price * quantity - discount
    if total.is_negative():
        raise ValidationError(
            f"Item discount {discount} exceeds line amount {price * quantity}"
        )
    return total


def calculate_totals(
    lines: Iterable[PricedLine],
    discount: Amount = Decimal("0"),
    tax: Amount = Decimal("0"),
    shipping: Amount = Decimal("0"),
    currency: str = DEFAULT_CURRENCY,
) -> OrderTotals:
    """
    Compute subtotal and total for an order.

    Raises:
        ValidationError: If there are no lines, an amount is negative,
            or the discount pushes the total below zero
    """
    lines = list(lines)
    if not lines:
        raise ValidationError("Order must contain at least one item")

    subtotal = Money.zero(currency)
    for line in lines:
        subtotal = subtotal + line_total(
            line.quantity, line.unit_price, line.discount_amount, currency
        )

    discount_money = _money(discount, currency, "Discount")
    tax_money = _money(tax, currency, "Tax")
    shipping_money = _money(shipping, currency, "Shipping")

    total = subtotal - discount_money + tax_money + shipping_money
    if total.is_negative():
        raise ValidationError(
            f"Order discount {discount_money} exceeds order value, total would be {total}"
        )

    return OrderTotals(
        subtotal=subtotal,
        discount=discount_money,
        tax=tax_money,
        shipping=shipping_money,
        total=total,
    )
