"""
Order aggregate root.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union
import uuid

from ..enums import OrderStatus
from ..events import (
    DomainEvent,
    OrderCreatedEvent,
    OrderDeletedEvent,
    OrderStatusChangedEvent,
    OrderUpdatedEvent,
)
from ..events.base import utcnow
from ..exceptions import ValidationError
from ..totals import calculate_totals, line_total
from ..value_objects import DEFAULT_CURRENCY, Money, OrderNumber


def new_id() -> str:
    return str(uuid.uuid4())


def _to_cents(value: Union[Decimal, int, str, None]) -> Decimal:
    return Money(amount=value or Decimal("0")).rounded().amount


@dataclass
class OrderItem:
    """
    Individual line item within an order.

    Immutable once the order is created; ``total`` is computed from
    quantity, unit price and the line discount.
    """
    name: str
    sku: str
    quantity: int
    unit_price: Decimal
    description: Optional[str] = None
    tax_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        if not self.name:
            raise ValidationError("Item name is required")
        if not self.sku:
            raise ValidationError("Item SKU is required")
        # Stored at the minor unit so the line total sums exactly
        self.unit_price = _to_cents(self.unit_price)
        self.tax_amount = _to_cents(self.tax_amount)
        self.discount_amount = _to_cents(self.discount_amount)
        if self.tax_amount < 0:
            raise ValidationError(f"Item tax cannot be negative: {self.tax_amount}")

    def calculate_total(self, currency: str = DEFAULT_CURRENCY) -> Decimal:
        """Recalculate and store the line total."""
        self.total = line_total(
            self.quantity, self.unit_price, self.discount_amount, currency
        ).amount
        return self.total


@dataclass
class Order:
    """
    Order aggregate root.

    Monetary fields only change through ``create``; status only changes
    through ``change_status``, which the payment flow drives.
    """
    id: str
    order_number: OrderNumber
    user_id: str
    items: List[OrderItem] = field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING

    subtotal: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    shipping: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    currency: str = DEFAULT_CURRENCY

    discount_code: Optional[str] = None
    notes: Optional[str] = None
    shipping_address: Optional[str] = None
    billing_address: Optional[str] = None

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # Optimistic concurrency token, bumped by the repository on every update
    version: int = 0

    _domain_events: List[DomainEvent] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def create(
        cls,
        user_id: str,
        items: List[OrderItem],
        order_number: OrderNumber,
        discount: Decimal = Decimal("0"),
        tax: Decimal = Decimal("0"),
        shipping: Decimal = Decimal("0"),
        currency: str = DEFAULT_CURRENCY,
        discount_code: Optional[str] = None,
        notes: Optional[str] = None,
        shipping_address: Optional[str] = None,
        billing_address: Optional[str] = None,
    ) -> 'Order':
        """
        Factory method to create a new Order in PENDING.

        Args:
            user_id: Owning user
            items: At least one OrderItem
            order_number: Pre-generated unique order number
            discount: Order-level discount
            tax: Order-level tax
            shipping: Shipping charge
            currency: 3-letter ISO currency code

        Returns:
            New Order with OrderCreatedEvent collected

        Raises:
            ValidationError: If items is empty or amounts are inconsistent
        """
        if not items:
            raise ValidationError("Order must contain at least one item")
        currency = (currency or DEFAULT_CURRENCY).upper()

        totals = calculate_totals(items, discount, tax, shipping, currency)
        for item in items:
            item.calculate_total(currency)

        order = cls(
            id=new_id(),
            order_number=order_number,
            user_id=user_id,
            items=list(items),
            status=OrderStatus.PENDING,
            subtotal=totals.subtotal.amount,
            discount=totals.discount.amount,
            tax=totals.tax.amount,
            shipping=totals.shipping.amount,
            total=totals.total.amount,
            currency=currency,
            discount_code=discount_code,
            notes=notes,
            shipping_address=shipping_address,
            billing_address=billing_address,
        )
        order._record_event(
            OrderCreatedEvent(
                order_id=order.id,
                order_number=str(order.order_number),
                user_id=user_id,
                total=order.total,
                currency=order.currency,
                items_count=len(order.items),
            )
        )
        return order

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    def change_status(self, new_status: OrderStatus, reason: Optional[str] = None) -> bool:
        """
        Overwrite the order status.

        Returns:
            True if the status actually changed
        """
        if new_status == self.status:
            return False
        previous_status = self.status
        self.status = new_status
        self.updated_at = utcnow()
        self._record_event(
            OrderStatusChangedEvent(
                order_id=self.id,
                order_number=str(self.order_number),
                previous_status=previous_status.value,
                new_status=new_status.value,
                reason=reason,
            )
        )
        return True

    def update_details(self, **fields: Optional[str]) -> List[str]:
        """
        Update descriptive fields (notes, addresses, discount code).

        Totals and status are never touched here.
        """
        allowed = ("notes", "shipping_address", "billing_address", "discount_code")
        changed = []
        for name, value in fields.items():
            if name not in allowed:
                raise ValidationError(f"Field '{name}' cannot be updated")
            if value is not None and getattr(self, name) != value:
                setattr(self, name, value)
                changed.append(name)
        if changed:
            self.updated_at = utcnow()
            self._record_event(
                OrderUpdatedEvent(
                    order_id=self.id,
                    order_number=str(self.order_number),
                    updated_fields=tuple(changed),
                )
            )
        return changed

    def mark_deleted(self) -> None:
        self._record_event(
            OrderDeletedEvent(order_id=self.id, order_number=str(self.order_number))
        )

    # =========================================================================
    # EVENT COLLECTION
    # =========================================================================

    def get_domain_events(self) -> List[DomainEvent]:
        """Get a copy of the events collected by this aggregate."""
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        """Clear collected events (after publishing)."""
        self._domain_events.clear()

    def _record_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)
