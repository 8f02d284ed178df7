"""Provider name -> payment gateway mapping."""
import logging
from typing import Dict, List, Optional

from core.application.interfaces import IPaymentGateway
from core.domain.exceptions import UnsupportedProviderError

logger = logging.getLogger(__name__)


class PaymentGatewayRegistry:
    """
    Registry of payment gateways, populated at process start.

    Lookup is case-insensitive and fails closed for unknown names.
    """

    def __init__(self) -> None:
        self._gateways: Dict[str, IPaymentGateway] = {}

    def register(self, gateway: IPaymentGateway, name: Optional[str] = None) -> None:
        """
        Register a gateway under ``name`` (defaults to ``gateway.name``).

        Raises:
            ValueError: If no name is given or it is already registered
        """
        key = (name or gateway.name or "").strip().lower()
        if not key:
            raise ValueError("Payment gateway must have a name")
        if key in self._gateways:
            raise ValueError(f"Payment gateway '{key}' is already registered")
        self._gateways[key] = gateway
        logger.info(f"Registered payment gateway: {key} ({type(gateway).__name__})")

    def get(self, provider: str) -> IPaymentGateway:
        """
        Resolve the gateway for a provider name.

        Raises:
            UnsupportedProviderError: If no gateway is registered
        """
        gateway = self._gateways.get((provider or "").strip().lower())
        if gateway is None:
            raise UnsupportedProviderError(provider)
        return gateway

    def supports(self, provider: str) -> bool:
        return (provider or "").strip().lower() in self._gateways

    def supported_providers(self) -> List[str]:
        return sorted(self._gateways)
