"""
Payment Domain Events.

Events that occur during the payment lifecycle, whether driven by a
synchronous API call or by a gateway webhook.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .base import DomainEvent


@dataclass
class _PaymentEvent(DomainEvent):
    payment_id: str = ""
    payment_reference: str = ""
    order_id: str = ""

    def __post_init__(self):
        """Set aggregate_id to payment_id."""
        if not self.aggregate_id and self.payment_id:
            self.aggregate_id = self.payment_id
        super().__post_init__()


@dataclass
class PaymentCreatedEvent(_PaymentEvent):
    """Payment was created in PENDING."""

    provider: str = ""
    amount: Decimal = Decimal("0")
    currency: str = ""


@dataclass
class PaymentStatusChangedEvent(_PaymentEvent):
    """Payment moved to a new status."""

    previous_status: str = ""
    new_status: str = ""
    source: str = "api"  # "api" or "webhook"


@dataclass
class PaymentFailedEvent(_PaymentEvent):
    """A gateway call for this payment failed."""

    operation: str = ""
    error_message: Optional[str] = None
