"""Application services."""
from .gateway_registry import PaymentGatewayRegistry
from .order_service import OrderApplicationService
from .payment_service import PaymentApplicationService
from .webhook_reconciler import WEBHOOK_STATUS_MAP, WebhookReconciler, map_provider_status

__all__ = [
    "OrderApplicationService",
    "PaymentApplicationService",
    "PaymentGatewayRegistry",
    "WEBHOOK_STATUS_MAP",
    "WebhookReconciler",
    "map_provider_status",
]
