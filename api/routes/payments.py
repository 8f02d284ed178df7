"""
Payment endpoints.

Payment creation, lifecycle transitions and inbound gateway webhooks.
"""
from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Query, Request, status
import logging

from api.dependencies import get_current_user_id, get_payment_service
from core.application.dtos import (
    CapturePaymentRequest,
    CreatePaymentRequest,
    PaymentDTO,
    RefundPaymentRequest,
    SupportedProvidersDTO,
)
from core.application.services import PaymentApplicationService
from core.domain.exceptions import ValidationError


logger = logging.getLogger(__name__)
router = APIRouter()


# =============================================================================
# CREATE / QUERY
# =============================================================================

@router.post(
    "",
    response_model=PaymentDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Create payment",
    description="Start a payment for an order and open the provider's hosted checkout",
)
async def create_payment(
    request: CreatePaymentRequest,
    user_id: str = Depends(get_current_user_id),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    return await service.create_payment(user_id, request)


@router.get("", response_model=List[PaymentDTO], summary="List all payments")
async def list_payments(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    return await service.list_payments(limit=limit, offset=offset)


@router.get("/mine", response_model=List[PaymentDTO], summary="List my payments")
async def list_my_payments(
    user_id: str = Depends(get_current_user_id),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    return await service.list_user_payments(user_id)


@router.get("/methods", response_model=SupportedProvidersDTO, summary="Supported providers")
async def supported_methods(service: PaymentApplicationService = Depends(get_payment_service)):
    return service.supported_providers()


@router.get("/reference/{payment_reference}", response_model=PaymentDTO)
async def get_payment_by_reference(
    payment_reference: str,
    service: PaymentApplicationService = Depends(get_payment_service),
):
    return await service.get_payment_by_reference(payment_reference)


@router.get("/order/{order_id}", response_model=List[PaymentDTO])
async def list_order_payments(
    order_id: str,
    service: PaymentApplicationService = Depends(get_payment_service),
):
    return await service.list_order_payments(order_id)


@router.get("/{payment_id}", response_model=PaymentDTO)
async def get_payment(
    payment_id: str,
    service: PaymentApplicationService = Depends(get_payment_service),
):
    return await service.get_payment(payment_id)


# =============================================================================
# TRANSITIONS
# =============================================================================

@router.patch("/{payment_id}/authorize", response_model=PaymentDTO)
async def authorize_payment(
    payment_id: str,
    service: PaymentApplicationService = Depends(get_payment_service),
):
    return await service.authorize_payment(payment_id)


@router.patch("/{payment_id}/capture", response_model=PaymentDTO)
async def capture_payment(
    payment_id: str,
    request: Optional[CapturePaymentRequest] = Body(default=None),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    amount = request.amount if request else None
    return await service.capture_payment(payment_id, amount)


@router.patch("/{payment_id}/cancel", response_model=PaymentDTO)
async def cancel_payment(
    payment_id: str,
    service: PaymentApplicationService = Depends(get_payment_service),
):
    return await service.cancel_payment(payment_id)


@router.patch("/{payment_id}/refund", response_model=PaymentDTO)
async def refund_payment(
    payment_id: str,
    request: Optional[RefundPaymentRequest] = Body(default=None),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    request = request or RefundPaymentRequest()
    return await service.refund_payment(payment_id, request.amount, request.reason)


# =============================================================================
# WEBHOOKS
# =============================================================================

@router.post(
    "/webhook/{provider}",
    status_code=status.HTTP_200_OK,
    summary="Gateway webhook",
    description=(
        "Applied and ignored notifications are both acknowledged with 200; "
        "an invalid token is 401 and a malformed body 422"
    ),
)
async def gateway_webhook(
    provider: str,
    request: Request,
    token: Optional[str] = Query(default=None),
    tamara_token: Optional[str] = Query(default=None, alias="tamaraToken"),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Webhook body must be valid JSON")

    result = await service.handle_webhook(provider, token or tamara_token or "", payload)
    return {
        "outcome": result.outcome.value,
        "reason": result.reason,
        "payment_id": result.payment_id,
        "status": result.status.value if result.status else None,
    }
