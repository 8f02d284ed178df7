"""Payment application service tests: lifecycle, mirrored order status, failures."""
from decimal import Decimal

import pytest

from core.application.dtos import CreatePaymentRequest
from core.domain.enums import OrderStatus, PaymentStatus
from core.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    GatewayError,
    GatewayTimeoutError,
    InvalidStateError,
    NotFoundError,
    UnsupportedProviderError,
    ValidationError,
)
from tests.conftest import OTHER_USER_ID, USER_ID


def _request(order_id, provider="mock", amount="190"):
    return CreatePaymentRequest(order_id=order_id, provider=provider, amount=Decimal(amount))


async def _order_status(order_service, order_id):
    return (await order_service.get_order(order_id)).status


@pytest.mark.asyncio
async def test_create_payment_opens_checkout(payment_service, order_service, order, gateway):
    payment = await payment_service.create_payment(USER_ID, _request(order.id))

    assert payment.status == PaymentStatus.PENDING
    assert payment.provider == "mock"
    assert payment.currency == "SAR"
    assert payment.payment_reference.startswith("PAY-")
    assert payment.external_id.startswith("mock_")
    assert payment.checkout_url.endswith(payment.external_id)
    assert gateway.operations() == ["create_checkout"]
    assert await _order_status(order_service, order.id) == OrderStatus.AWAITING_PAYMENT


@pytest.mark.asyncio
async def test_full_lifecycle_mirrors_order_status(payment_service, order_service, payment, event_bus):
    authorized = await payment_service.authorize_payment(payment.id)
    assert authorized.status == PaymentStatus.AUTHORIZED
    assert authorized.authorized_at is not None
    assert await _order_status(order_service, payment.order_id) == OrderStatus.PAYMENT_AUTHORIZED

    captured = await payment_service.capture_payment(payment.id)
    assert captured.status == PaymentStatus.CAPTURED
    assert await _order_status(order_service, payment.order_id) == OrderStatus.PROCESSING

    refunded = await payment_service.refund_payment(payment.id, Decimal("50"), "damaged")
    assert refunded.status == PaymentStatus.PARTIALLY_REFUNDED
    assert await _order_status(order_service, payment.order_id) == OrderStatus.PARTIALLY_REFUNDED

    transitions = [
        (e.previous_status, e.new_status)
        for e in event_bus.recent_events("PaymentStatusChangedEvent")
    ]
    assert transitions == [
        ("pending", "authorized"),
        ("authorized", "captured"),
        ("captured", "partially_refunded"),
    ]


@pytest.mark.asyncio
async def test_full_refund_refunds_order(payment_service, order_service, payment):
    await payment_service.capture_payment(payment.id)

    refunded = await payment_service.refund_payment(payment.id)

    assert refunded.status == PaymentStatus.REFUNDED
    assert refunded.refunded_at is not None
    assert await _order_status(order_service, payment.order_id) == OrderStatus.REFUNDED


@pytest.mark.asyncio
async def test_capture_directly_from_pending(payment_service, payment):
    captured = await payment_service.capture_payment(payment.id, Decimal("190"))
    assert captured.status == PaymentStatus.CAPTURED


@pytest.mark.asyncio
async def test_cancel_authorized_payment_cancels_order(payment_service, order_service, payment):
    await payment_service.authorize_payment(payment.id)

    cancelled = await payment_service.cancel_payment(payment.id)

    assert cancelled.status == PaymentStatus.CANCELLED
    assert await _order_status(order_service, payment.order_id) == OrderStatus.CANCELLED


@pytest.mark.asyncio
async def test_cancel_captured_payment_is_refused(payment_service, payment, gateway):
    await payment_service.capture_payment(payment.id)

    with pytest.raises(InvalidStateError, match="refund it instead"):
        await payment_service.cancel_payment(payment.id)
    assert "cancel" not in gateway.operations()


@pytest.mark.asyncio
async def test_capture_from_wrong_state_does_not_call_gateway(payment_service, payment, gateway):
    await payment_service.capture_payment(payment.id)
    calls = len(gateway.calls)

    with pytest.raises(InvalidStateError):
        await payment_service.capture_payment(payment.id)
    with pytest.raises(InvalidStateError):
        await payment_service.authorize_payment(payment.id)
    assert len(gateway.calls) == calls


@pytest.mark.asyncio
async def test_refund_requires_captured(payment_service, payment):
    with pytest.raises(InvalidStateError):
        await payment_service.refund_payment(payment.id, Decimal("10"))


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-1", "190.01"])
async def test_refund_amount_is_validated(payment_service, payment, amount):
    await payment_service.capture_payment(payment.id)

    with pytest.raises(ValidationError):
        await payment_service.refund_payment(payment.id, Decimal(amount))


@pytest.mark.asyncio
async def test_second_payment_after_success_conflicts(payment_service, order, payment):
    await payment_service.authorize_payment(payment.id)

    with pytest.raises(ConflictError):
        await payment_service.create_payment(USER_ID, _request(order.id))
    assert len(await payment_service.list_order_payments(order.id)) == 1


@pytest.mark.asyncio
async def test_retry_after_failed_payment_is_allowed(payment_service, order, payment, gateway):
    gateway.fail_on.add("authorize")
    with pytest.raises(GatewayError):
        await payment_service.authorize_payment(payment.id)
    gateway.fail_on.clear()

    retry = await payment_service.create_payment(USER_ID, _request(order.id))

    assert retry.status == PaymentStatus.PENDING
    assert len(await payment_service.list_order_payments(order.id)) == 2


@pytest.mark.asyncio
async def test_create_payment_for_other_users_order_is_forbidden(payment_service, order, store):
    with pytest.raises(AuthorizationError):
        await payment_service.create_payment(OTHER_USER_ID, _request(order.id))
    assert store.payments == {}


@pytest.mark.asyncio
async def test_create_payment_for_missing_order(payment_service):
    with pytest.raises(NotFoundError):
        await payment_service.create_payment(USER_ID, _request("missing"))


@pytest.mark.asyncio
async def test_unsupported_provider_persists_nothing(payment_service, order, store):
    with pytest.raises(UnsupportedProviderError):
        await payment_service.create_payment(USER_ID, _request(order.id, provider="paypal"))
    assert store.payments == {}


@pytest.mark.asyncio
async def test_checkout_failure_marks_payment_failed(payment_service, order_service, order, gateway):
    gateway.fail_on.add("create_checkout")

    with pytest.raises(GatewayError):
        await payment_service.create_payment(USER_ID, _request(order.id))

    [failed] = await payment_service.list_order_payments(order.id)
    assert failed.status == PaymentStatus.FAILED
    assert "rejected create_checkout" in failed.error_message
    assert failed.external_id is None
    assert await _order_status(order_service, order.id) == OrderStatus.PENDING


@pytest.mark.asyncio
async def test_gateway_timeout_marks_payment_failed(payment_service, order_service, payment, gateway):
    gateway.delay["authorize"] = 2.0

    with pytest.raises(GatewayTimeoutError):
        await payment_service.authorize_payment(payment.id)

    stored = await payment_service.get_payment(payment.id)
    assert stored.status == PaymentStatus.FAILED
    assert "timed out" in stored.error_message
    assert await _order_status(order_service, payment.order_id) == OrderStatus.AWAITING_PAYMENT


@pytest.mark.asyncio
async def test_refund_failure_keeps_payment_captured(payment_service, order_service, payment, gateway, event_bus):
    await payment_service.capture_payment(payment.id)
    gateway.fail_on.add("refund")

    with pytest.raises(GatewayError):
        await payment_service.refund_payment(payment.id, Decimal("50"))

    stored = await payment_service.get_payment(payment.id)
    assert stored.status == PaymentStatus.CAPTURED
    assert "rejected refund" in stored.error_message
    assert await _order_status(order_service, payment.order_id) == OrderStatus.PROCESSING
    assert event_bus.recent_events("PaymentFailedEvent")[-1].operation == "refund"


@pytest.mark.asyncio
async def test_unexpected_gateway_exception_is_normalised(payment_service, payment, gateway, monkeypatch):
    async def boom(payment):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(gateway, "authorize", boom)

    with pytest.raises(GatewayError, match="connection reset"):
        await payment_service.authorize_payment(payment.id)
    assert (await payment_service.get_payment(payment.id)).status == PaymentStatus.FAILED


@pytest.mark.asyncio
async def test_queries(payment_service, payment):
    by_reference = await payment_service.get_payment_by_reference(payment.payment_reference)
    mine = await payment_service.list_user_payments(USER_ID)
    theirs = await payment_service.list_user_payments(OTHER_USER_ID)

    assert by_reference.id == payment.id
    assert [p.id for p in mine] == [payment.id]
    assert theirs == []
    assert [p.id for p in await payment_service.list_payments()] == [payment.id]
    assert payment_service.supported_providers().methods == ["mock"]


@pytest.mark.asyncio
async def test_list_order_payments_for_missing_order(payment_service):
    with pytest.raises(NotFoundError):
        await payment_service.list_order_payments("missing")
