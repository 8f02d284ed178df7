"""
Payment Status Enum.

Lifecycle states of a Payment and the ordering used when merging
asynchronous gateway notifications.

Progress order (a notification may only move a payment forward):

    PENDING < AUTHORIZED < CAPTURED < PARTIALLY_REFUNDED < REFUNDED

FAILED and CANCELLED are sinks: nothing leaves them, and they can only be
entered from PENDING or AUTHORIZED (captured money cannot be declined).
"""
from enum import Enum
from typing import Optional


class PaymentStatus(str, Enum):
    """Payment status values."""

    PENDING = "pending"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"

    @property
    def is_successful(self) -> bool:
        """AUTHORIZED or CAPTURED: counts against the one-live-payment rule."""
        return self in SUCCESSFUL_PAYMENT_STATUSES

    @property
    def has_moved_funds(self) -> bool:
        """Past PENDING on the progress order: money was reserved or collected."""
        return not self.is_sink and self.rank > 0

    @property
    def is_sink(self) -> bool:
        return self in SINK_PAYMENT_STATUSES

    @property
    def rank(self) -> Optional[int]:
        """Position on the progress order, None for sinks."""
        return _PROGRESS_RANK.get(self)

    def can_advance_to(self, new_status: "PaymentStatus") -> bool:
        """
        Check whether ``new_status`` moves this status forward.

        Equal statuses are not an advance, so repeated notifications
        become no-ops.
        """
        if self is new_status or self.is_sink:
            return False
        if new_status.is_sink:
            return self in (PaymentStatus.PENDING, PaymentStatus.AUTHORIZED)
        return new_status.rank > self.rank


SUCCESSFUL_PAYMENT_STATUSES = frozenset({
    PaymentStatus.AUTHORIZED,
    PaymentStatus.CAPTURED,
})

SINK_PAYMENT_STATUSES = frozenset({
    PaymentStatus.FAILED,
    PaymentStatus.CANCELLED,
})

_PROGRESS_RANK = {
    PaymentStatus.PENDING: 0,
    PaymentStatus.AUTHORIZED: 1,
    PaymentStatus.CAPTURED: 2,
    PaymentStatus.PARTIALLY_REFUNDED: 3,
    PaymentStatus.REFUNDED: 4,
}
