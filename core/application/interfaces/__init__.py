"""Application layer interfaces."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from core.domain.entities import Order, Payment
from core.domain.exceptions import ValidationError


@dataclass(frozen=True)
class CheckoutSession:
    """Hosted checkout created by a provider."""
    checkout_url: str
    external_id: str


@dataclass(frozen=True)
class ProviderStatus:
    """Point-in-time provider-side state of a payment."""
    external_id: str
    status: str
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WebhookNotification:
    """Provider notification reduced to what reconciliation needs."""
    external_id: str
    status: str
    raw: Dict[str, Any] = field(default_factory=dict)


class IPaymentGateway(ABC):
    """
    Interface for payment provider operations.

    One implementation per provider; the payment service never branches on
    provider identity beyond selecting an implementation from the registry.

    Every capability signals GatewayError (never a silent success) when the
    provider call fails, is rejected, or returns an unexpected shape.
    """

    #: Registry key, matched case-insensitively
    name: str = ""

    @abstractmethod
    async def create_checkout(self, payment: Payment, order: Order) -> CheckoutSession:
        """
        Start a hosted payment flow for a PENDING payment.

        Args:
            payment: Payment being collected
            order: Order the payment belongs to (items, totals)

        Returns:
            CheckoutSession with the checkout URL and the provider's id
        """
        pass

    @abstractmethod
    async def authorize(self, payment: Payment) -> None:
        """Confirm the funds are reserved."""
        pass

    @abstractmethod
    async def capture(self, payment: Payment, amount: Optional[Decimal] = None) -> None:
        """
        Collect funds, full or partial.

        Args:
            payment: Authorized (or directly capturable) payment
            amount: Partial amount, never above ``payment.amount``
        """
        pass

    @abstractmethod
    async def cancel(self, payment: Payment) -> None:
        """Void a payment that has not been captured."""
        pass

    @abstractmethod
    async def refund(
        self,
        payment: Payment,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
    ) -> None:
        """Return funds on a captured payment, full when amount is None."""
        pass

    @abstractmethod
    async def get_status(self, external_id: str) -> ProviderStatus:
        """Read the provider-side state of a payment."""
        pass

    @abstractmethod
    async def verify_webhook(self, token: str) -> bool:
        """
        Validate an inbound notification token.

        Must not touch local state and must not raise for a bad token.
        """
        pass

    def parse_notification(self, payload: Mapping[str, Any]) -> WebhookNotification:
        """
        Extract the external id and provider status from a webhook body.

        Raises:
            ValidationError: If the payload is malformed
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Webhook payload must be an object")
        external_id = payload.get("order_id")
        status = payload.get("order_status")
        if not external_id or not isinstance(external_id, str):
            raise ValidationError("Webhook payload is missing 'order_id'")
        if not status or not isinstance(status, str):
            raise ValidationError("Webhook payload is missing 'order_status'")
        return WebhookNotification(external_id=external_id, status=status, raw=dict(payload))


__all__ = [
    "CheckoutSession",
    "IPaymentGateway",
    "ProviderStatus",
    "WebhookNotification",
]
