"""
Payment aggregate root.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..enums import OrderStatus, PaymentStatus
from ..events import (
    DomainEvent,
    PaymentCreatedEvent,
    PaymentFailedEvent,
    PaymentStatusChangedEvent,
)
from ..events.base import utcnow
from ..exceptions import InvalidStateError, ValidationError
from ..value_objects import DEFAULT_CURRENCY, PaymentReference
from .order import new_id


# Order status mirrored for each payment status. FAILED leaves the order
# untouched so it can be paid again with a new payment.
ORDER_STATUS_BY_PAYMENT_STATUS = {
    PaymentStatus.AUTHORIZED: OrderStatus.PAYMENT_AUTHORIZED,
    PaymentStatus.CAPTURED: OrderStatus.PROCESSING,
    PaymentStatus.CANCELLED: OrderStatus.CANCELLED,
    PaymentStatus.REFUNDED: OrderStatus.REFUNDED,
    PaymentStatus.PARTIALLY_REFUNDED: OrderStatus.PARTIALLY_REFUNDED,
}

_TIMESTAMP_FIELD_BY_STATUS = {
    PaymentStatus.AUTHORIZED: "authorized_at",
    PaymentStatus.CAPTURED: "captured_at",
    PaymentStatus.REFUNDED: "refunded_at",
    PaymentStatus.PARTIALLY_REFUNDED: "refunded_at",
}


@dataclass
class Payment:
    """
    One attempt to collect money for an Order through a named provider.

    Failures are recorded in place (status FAILED plus ``error_message``);
    payments are never deleted.
    """
    id: str
    payment_reference: PaymentReference
    order_id: str
    user_id: str
    provider: str
    amount: Decimal
    currency: str = DEFAULT_CURRENCY
    status: PaymentStatus = PaymentStatus.PENDING

    external_id: Optional[str] = None
    checkout_url: Optional[str] = None
    success_url: Optional[str] = None
    failure_url: Optional[str] = None
    cancel_url: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None

    authorized_at: Optional[datetime] = None
    captured_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    version: int = 0

    _domain_events: List[DomainEvent] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def create(
        cls,
        order_id: str,
        user_id: str,
        provider: str,
        amount: Decimal,
        payment_reference: PaymentReference,
        currency: str = DEFAULT_CURRENCY,
        success_url: Optional[str] = None,
        failure_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> 'Payment':
        """
        Factory method to create a PENDING payment.

        Raises:
            ValidationError: If amount is not positive
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValidationError(f"Payment amount must be greater than zero, got {amount}")

        payment = cls(
            id=new_id(),
            payment_reference=payment_reference,
            order_id=order_id,
            user_id=user_id,
            provider=provider.lower(),
            amount=amount,
            currency=(currency or DEFAULT_CURRENCY).upper(),
            success_url=success_url,
            failure_url=failure_url,
            cancel_url=cancel_url,
            metadata=dict(metadata or {}),
        )
        payment._record_event(
            PaymentCreatedEvent(
                payment_id=payment.id,
                payment_reference=str(payment.payment_reference),
                order_id=order_id,
                user_id=user_id,
                provider=payment.provider,
                amount=amount,
                currency=payment.currency,
            )
        )
        return payment

    @property
    def mirrored_order_status(self) -> Optional[OrderStatus]:
        """Order status matching the current payment status, if any."""
        return ORDER_STATUS_BY_PAYMENT_STATUS.get(self.status)

    def ensure_status(self, *allowed: PaymentStatus, action: str) -> None:
        """Raise InvalidStateError unless the status is one of ``allowed``."""
        if self.status not in allowed:
            expected = ", ".join(s.value for s in allowed)
            raise InvalidStateError(
                f"Cannot {action} payment {self.payment_reference} in status "
                f"'{self.status.value}' (expected: {expected})"
            )

    def attach_checkout(self, checkout_url: str, external_id: str) -> None:
        """
        Record the hosted checkout returned by the gateway.

        The external identifier is immutable once set.
        """
        if self.external_id and self.external_id != external_id:
            raise InvalidStateError(
                f"Payment {self.payment_reference} already has external id {self.external_id}"
            )
        self.checkout_url = checkout_url
        self.external_id = external_id
        self.updated_at = utcnow()

    def transition_to(self, new_status: PaymentStatus, source: str = "api") -> bool:
        """
        Move to ``new_status`` and stamp its timestamp.

        A timestamp that is already set is never overwritten.

        Returns:
            True if the status changed
        """
        if new_status == self.status:
            return False
        previous_status = self.status
        now = utcnow()
        self.status = new_status
        self.updated_at = now

        timestamp_field = _TIMESTAMP_FIELD_BY_STATUS.get(new_status)
        if timestamp_field and getattr(self, timestamp_field) is None:
            setattr(self, timestamp_field, now)

        self._record_event(
            PaymentStatusChangedEvent(
                payment_id=self.id,
                payment_reference=str(self.payment_reference),
                order_id=self.order_id,
                previous_status=previous_status.value,
                new_status=new_status.value,
                source=source,
            )
        )
        return True

    def refund_status_for(self, amount: Optional[Decimal]) -> PaymentStatus:
        """PARTIALLY_REFUNDED for an amount strictly below the payment amount."""
        if amount is not None and Decimal(str(amount)) < self.amount:
            return PaymentStatus.PARTIALLY_REFUNDED
        return PaymentStatus.REFUNDED

    def record_failure(self, operation: str, error_message: str, mark_failed: bool = True) -> None:
        """
        Record a failed gateway call for audit.

        Args:
            operation: Capability that failed ("checkout", "capture", ...)
            error_message: Human-readable cause from the gateway
            mark_failed: Also move the payment to FAILED
        """
        self.error_message = error_message
        self.updated_at = utcnow()
        self._record_event(
            PaymentFailedEvent(
                payment_id=self.id,
                payment_reference=str(self.payment_reference),
                order_id=self.order_id,
                operation=operation,
                error_message=error_message,
            )
        )
        if mark_failed:
            self.transition_to(PaymentStatus.FAILED)

    # =========================================================================
    # EVENT COLLECTION
    # =========================================================================

    def get_domain_events(self) -> List[DomainEvent]:
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def _record_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)
