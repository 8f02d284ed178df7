"""
Tamara Payment Gateway Implementation.

Talks to the Tamara merchant API over aiohttp and verifies notification
tokens (HS256 JWT signed with the merchant notification token).
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import aiohttp
import jwt

from core.application.interfaces import CheckoutSession, IPaymentGateway, ProviderStatus
from core.domain.entities import Order, Payment
from core.domain.exceptions import GatewayError
from core.infrastructure.logging import get_logger
from core.settings.modules.tamara_settings import TamaraSettings


logger = get_logger("orderpay.gateways.tamara")


def _money(amount: Any, currency: str) -> Dict[str, Any]:
    return {"amount": float(Decimal(str(amount or 0))), "currency": currency}


class TamaraPaymentGateway(IPaymentGateway):
    """
    Tamara implementation of the payment gateway.

    One aiohttp session is opened lazily and reused; call ``close()`` on
    shutdown.
    """

    name = "tamara"

    def __init__(self, settings: TamaraSettings, public_base_url: str, timeout: float = 30.0):
        """
        Initialize Tamara gateway.

        Args:
            settings: Tamara settings with API URL and tokens
            public_base_url: Externally reachable base URL of this service
            timeout: Total per-request timeout in seconds
        """
        self.settings = settings
        self.api_url = settings.api_url.rstrip("/")
        self.notification_url = f"{public_base_url.rstrip('/')}/api/v1/payments/webhook/tamara"
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        logger.info(f"TamaraPaymentGateway initialized ({self.api_url})")

    # =========================================================================
    # CAPABILITIES
    # =========================================================================

    async def create_checkout(self, payment: Payment, order: Order) -> CheckoutSession:
        logger.info(f"Creating Tamara checkout for payment {payment.payment_reference}")
        data = await self._request("POST", "/checkout", self.build_checkout_payload(payment, order))

        checkout_url = data.get("checkout_url")
        external_id = data.get("order_id")
        if not checkout_url or not external_id:
            raise GatewayError("Invalid response from Tamara API: missing checkout_url/order_id", self.name)
        return CheckoutSession(checkout_url=checkout_url, external_id=str(external_id))

    async def authorize(self, payment: Payment) -> None:
        external_id = self._external_id(payment)
        logger.info(f"Authorizing Tamara payment {external_id}")
        await self._request("POST", f"/orders/{external_id}/authorise", {})

    async def capture(self, payment: Payment, amount: Optional[Decimal] = None) -> None:
        external_id = self._external_id(payment)
        capture_amount = amount if amount is not None else payment.amount
        logger.info(f"Capturing Tamara payment {external_id} for amount {capture_amount}")
        await self._request("POST", "/payments/capture", {
            "order_id": external_id,
            "total_amount": _money(capture_amount, payment.currency),
            "shipping_info": {
                "shipped_at": datetime.now(timezone.utc).isoformat(),
                "shipping_company": "N/A",
            },
        })

    async def cancel(self, payment: Payment) -> None:
        external_id = self._external_id(payment)
        logger.info(f"Canceling Tamara payment {external_id}")
        await self._request("POST", f"/orders/{external_id}/cancel", {})

    async def refund(
        self,
        payment: Payment,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
    ) -> None:
        external_id = self._external_id(payment)
        refund_amount = amount if amount is not None else payment.amount
        logger.info(f"Refunding Tamara payment {external_id} for amount {refund_amount}")
        await self._request("POST", "/payments/simplified-refund", {
            "order_id": external_id,
            "total_amount": _money(refund_amount, payment.currency),
            "comment": reason or "Customer requested refund",
        })

    async def get_status(self, external_id: str) -> ProviderStatus:
        data = await self._request("GET", f"/orders/{external_id}")
        status = data.get("status")
        if not status:
            raise GatewayError(f"Tamara order {external_id} has no status", self.name)
        return ProviderStatus(external_id=external_id, status=str(status), raw=data)

    async def verify_webhook(self, token: str) -> bool:
        secret = self.settings.notification_token
        if not secret:
            logger.warning("Tamara notification_token not configured, rejecting webhook")
            return False
        try:
            jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.PyJWTError as e:
            logger.warning(f"Failed to verify Tamara webhook token: {e}")
            return False
        return True

    # =========================================================================
    # PAYLOADS
    # =========================================================================

    def build_checkout_payload(self, payment: Payment, order: Order) -> Dict[str, Any]:
        """Build the POST /checkout body for a payment."""
        currency = payment.currency
        metadata = payment.metadata or {}
        payload = {
            "order_reference_id": str(order.order_number),
            "total_amount": _money(payment.amount, currency),
            "description": f"Order {order.order_number}",
            "country_code": self.settings.country_code,
            "payment_type": self.settings.payment_type,
            "locale": self.settings.locale,
            "items": [
                {
                    "reference_id": item.id,
                    "type": "physical",
                    "name": item.name,
                    "sku": item.sku,
                    "quantity": item.quantity,
                    "unit_price": _money(item.unit_price, currency),
                    "tax_amount": _money(item.tax_amount, currency),
                    "discount_amount": _money(item.discount_amount, currency),
                    "total_amount": _money(item.total, currency),
                }
                for item in order.items
            ],
            "consumer": {
                "email": metadata.get("customer_email", "customer@example.com"),
                "first_name": metadata.get("customer_first_name", "Customer"),
                "last_name": metadata.get("customer_last_name", "Name"),
                "phone_number": metadata.get("customer_phone", "+966500000000"),
            },
            "shipping_amount": _money(order.shipping, currency),
            "tax_amount": _money(order.tax, currency),
            "merchant_url": {
                "success": payment.success_url,
                "failure": payment.failure_url,
                "cancel": payment.cancel_url,
                "notification": self.notification_url,
            },
        }
        if order.discount_code:
            payload["discount"] = {
                "name": order.discount_code,
                "amount": _money(order.discount, currency),
            }
        return payload

    # =========================================================================
    # HTTP
    # =========================================================================

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send one request to the Tamara API.

        Returns:
            Decoded JSON body ({} for an empty body)

        Raises:
            GatewayError: On transport errors, non-2xx responses or non-JSON bodies
        """
        session = self._get_session()
        url = f"{self.api_url}{path}"
        try:
            async with session.request(method, url, json=payload) as response:
                if response.status >= 400:
                    error_text = await response.text()
                    logger.error(f"Tamara API error: {response.status} - {error_text}")
                    raise GatewayError(
                        f"Tamara {method} {path} failed with {response.status}: {error_text[:200]}",
                        self.name,
                    )
                if response.content_length == 0:
                    return {}
                data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise GatewayError(f"Tamara {method} {path} failed: {e}", self.name) from e
        except ValueError as e:
            raise GatewayError(f"Tamara {method} {path} returned invalid JSON", self.name) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise GatewayError(f"Tamara {method} {path} returned an unexpected body", self.name)
        return data

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={
                    "Authorization": f"Bearer {self.settings.api_token or ''}",
                    "Content-Type": "application/json",
                },
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _external_id(self, payment: Payment) -> str:
        if not payment.external_id:
            raise GatewayError(
                f"Payment {payment.payment_reference} has no Tamara order id", self.name
            )
        return payment.external_id
