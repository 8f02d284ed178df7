"""
Mock Payment Gateway Implementation.

This simulates a payment provider for tests, demos and local development.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set
import asyncio
import hmac
import logging
import uuid

from core.application.interfaces import CheckoutSession, IPaymentGateway, ProviderStatus
from core.domain.entities import Order, Payment
from core.domain.exceptions import GatewayError


logger = logging.getLogger(__name__)


class MockPaymentGateway(IPaymentGateway):
    """
    Mock implementation of the payment gateway.

    Records every call instead of contacting a provider. Individual
    operations can be made to fail (``fail_on``) or to hang (``delay``)
    so error paths can be exercised.
    """

    def __init__(
        self,
        name: str = "mock",
        webhook_secret: str = "mock-secret",
        checkout_base_url: str = "https://checkout.mock.local",
    ):
        """Initialize mock payment gateway."""
        self.name = name
        self.webhook_secret = webhook_secret
        self.checkout_base_url = checkout_base_url.rstrip("/")
        self.calls: List[Dict[str, Any]] = []
        self.fail_on: Set[str] = set()
        self.delay: Dict[str, float] = {}
        self.provider_statuses: Dict[str, str] = {}
        logger.info(f"MockPaymentGateway '{name}' initialized")

    async def create_checkout(self, payment: Payment, order: Order) -> CheckoutSession:
        await self._simulate("create_checkout", payment_reference=str(payment.payment_reference))
        external_id = f"{self.name}_{uuid.uuid4().hex[:16]}"
        self.provider_statuses[external_id] = "new"
        return CheckoutSession(
            checkout_url=f"{self.checkout_base_url}/{external_id}",
            external_id=external_id,
        )

    async def authorize(self, payment: Payment) -> None:
        await self._simulate("authorize", external_id=payment.external_id)
        self.provider_statuses[payment.external_id] = "authorised"

    async def capture(self, payment: Payment, amount: Optional[Decimal] = None) -> None:
        await self._simulate("capture", external_id=payment.external_id, amount=amount)
        self.provider_statuses[payment.external_id] = "captured"

    async def cancel(self, payment: Payment) -> None:
        await self._simulate("cancel", external_id=payment.external_id)
        self.provider_statuses[payment.external_id] = "canceled"

    async def refund(
        self,
        payment: Payment,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
    ) -> None:
        await self._simulate("refund", external_id=payment.external_id, amount=amount, reason=reason)
        partial = amount is not None and amount < payment.amount
        self.provider_statuses[payment.external_id] = "partially_refunded" if partial else "fully_refunded"

    async def get_status(self, external_id: str) -> ProviderStatus:
        await self._simulate("get_status", external_id=external_id)
        status = self.provider_statuses.get(external_id)
        if status is None:
            raise GatewayError(f"Unknown {self.name} order {external_id}", self.name)
        return ProviderStatus(external_id=external_id, status=status, raw={"status": status})

    async def verify_webhook(self, token: str) -> bool:
        self.calls.append({"operation": "verify_webhook"})
        return hmac.compare_digest(str(token or ""), self.webhook_secret)

    def operations(self) -> List[str]:
        """Names of the calls made so far, in order."""
        return [call["operation"] for call in self.calls]

    async def _simulate(self, operation: str, **details: Any) -> None:
        self.calls.append({"operation": operation, **details})
        logger.info(f"Mock {self.name} gateway: {operation} {details}")
        if operation in self.delay:
            await asyncio.sleep(self.delay[operation])
        if operation in self.fail_on:
            raise GatewayError(f"{self.name} rejected {operation}", self.name)
