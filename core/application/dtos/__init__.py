"""Application DTOs."""

from .order_dto import (
    CreateOrderRequest,
    OrderDTO,
    OrderItemDTO,
    OrderItemRequest,
    OrderListDTO,
    UpdateOrderRequest,
)
from .payment_dto import (
    CapturePaymentRequest,
    CreatePaymentRequest,
    PaymentDTO,
    RefundPaymentRequest,
    SupportedProvidersDTO,
    WebhookOutcome,
    WebhookResult,
)

__all__ = [
    "CapturePaymentRequest",
    "CreateOrderRequest",
    "CreatePaymentRequest",
    "OrderDTO",
    "OrderItemDTO",
    "OrderItemRequest",
    "OrderListDTO",
    "PaymentDTO",
    "RefundPaymentRequest",
    "SupportedProvidersDTO",
    "UpdateOrderRequest",
    "WebhookOutcome",
    "WebhookResult",
]
