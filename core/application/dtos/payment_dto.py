"""Application DTOs for Payment operations."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.domain.entities import Payment
from core.domain.enums import PaymentStatus


class CreatePaymentRequest(BaseModel):
    """Request DTO for starting a payment on an order."""

    order_id: str = Field(..., description="Order to pay for")
    provider: str = Field(..., min_length=1, description="Provider name, e.g. 'tamara'")
    amount: Decimal = Field(..., gt=0, description="Amount to collect")
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="Defaults to the order currency")
    success_url: Optional[str] = None
    failure_url: Optional[str] = None
    cancel_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class CapturePaymentRequest(BaseModel):
    """Capture body; omitted amount captures the full payment."""

    amount: Optional[Decimal] = Field(None, gt=0)


class RefundPaymentRequest(BaseModel):
    """Refund body; omitted amount refunds the full payment."""

    amount: Optional[Decimal] = Field(None, gt=0)
    reason: Optional[str] = Field(None, max_length=500)


class PaymentDTO(BaseModel):
    """Response DTO for payment details."""

    id: str
    payment_reference: str
    order_id: str
    user_id: str
    provider: str
    status: PaymentStatus
    amount: Decimal
    currency: str
    external_id: Optional[str] = None
    checkout_url: Optional[str] = None
    success_url: Optional[str] = None
    failure_url: Optional[str] = None
    cancel_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    authorized_at: Optional[datetime] = None
    captured_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentDTO":
        return cls(
            id=payment.id,
            payment_reference=str(payment.payment_reference),
            order_id=payment.order_id,
            user_id=payment.user_id,
            provider=payment.provider,
            status=payment.status,
            amount=payment.amount,
            currency=payment.currency,
            external_id=payment.external_id,
            checkout_url=payment.checkout_url,
            success_url=payment.success_url,
            failure_url=payment.failure_url,
            cancel_url=payment.cancel_url,
            metadata=dict(payment.metadata or {}),
            error_message=payment.error_message,
            authorized_at=payment.authorized_at,
            captured_at=payment.captured_at,
            refunded_at=payment.refunded_at,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )


class WebhookOutcome(str, Enum):
    """Result of reconciling one gateway notification."""

    APPLIED = "applied"
    IGNORED = "ignored"


class WebhookResult(BaseModel):
    """What the reconciler did with a notification."""

    outcome: WebhookOutcome
    reason: Optional[str] = None
    payment_id: Optional[str] = None
    previous_status: Optional[PaymentStatus] = None
    status: Optional[PaymentStatus] = None

    model_config = {"frozen": True}

    @property
    def applied(self) -> bool:
        return self.outcome == WebhookOutcome.APPLIED


class SupportedProvidersDTO(BaseModel):
    methods: List[str] = Field(default_factory=list)
