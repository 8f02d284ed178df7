"""Application layer - services, interfaces, and DTOs."""

from .dtos import (
    CreateOrderRequest,
    CreatePaymentRequest,
    OrderDTO,
    OrderItemDTO,
    OrderListDTO,
    PaymentDTO,
    WebhookOutcome,
    WebhookResult,
)
from .interfaces import CheckoutSession, IPaymentGateway, ProviderStatus, WebhookNotification
from .locks import KeyedLock
from .services import (
    OrderApplicationService,
    PaymentApplicationService,
    PaymentGatewayRegistry,
    WebhookReconciler,
)

__all__ = [
    # DTOs
    "CreateOrderRequest",
    "CreatePaymentRequest",
    "OrderDTO",
    "OrderItemDTO",
    "OrderListDTO",
    "PaymentDTO",
    "WebhookOutcome",
    "WebhookResult",
    # Services
    "OrderApplicationService",
    "PaymentApplicationService",
    "PaymentGatewayRegistry",
    "WebhookReconciler",
    # Interfaces
    "CheckoutSession",
    "IPaymentGateway",
    "ProviderStatus",
    "WebhookNotification",
    "KeyedLock",
]
