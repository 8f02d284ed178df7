"""Application service for Payment operations."""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable, List, Mapping, Optional

from core.application.dtos.payment_dto import (
    CreatePaymentRequest,
    PaymentDTO,
    SupportedProvidersDTO,
    WebhookResult,
)
from core.application.interfaces import IPaymentGateway
from core.application.locks import KeyedLock, order_lock_key
from core.application.services.gateway_registry import PaymentGatewayRegistry
from core.application.services.order_service import OrderApplicationService
from core.application.services.webhook_reconciler import WebhookReconciler
from core.domain.entities import Order, Payment
from core.domain.enums import OrderStatus, PaymentStatus
from core.domain.event_bus import EventBus
from core.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateKeyError,
    GatewayError,
    GatewayTimeoutError,
    InvalidStateError,
    ValidationError,
)
from core.domain.repositories import UnitOfWork
from core.domain.value_objects import PaymentReference

logger = logging.getLogger(__name__)

GatewayCall = Callable[[IPaymentGateway, Payment], Awaitable[Any]]


class PaymentApplicationService:
    """
    Application service owning the Payment lifecycle.

    Every operation on a payment runs under the lock of its order. Gateway
    calls happen inside the lock but outside any unit of work; the payment
    write and the mirrored order write then commit together.

    A failed gateway call is recorded on the payment (FAILED where the
    lifecycle allows it, ``error_message`` always) and re-raised. Nothing is
    retried here.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        registry: PaymentGatewayRegistry,
        order_service: OrderApplicationService,
        locks: KeyedLock,
        event_bus: Optional[EventBus] = None,
        gateway_timeout: float = 30.0,
        reference_attempts: int = 3,
        reference_prefix: str = PaymentReference.default_prefix,
    ) -> None:
        """Initialize payment application service.

        Args:
            uow_factory: Creates a fresh UnitOfWork per operation
            registry: Provider name -> gateway mapping
            order_service: Applies mirrored order transitions
            locks: Per-order locks, shared with order_service
            event_bus: Receives domain events after commit
            gateway_timeout: Seconds before a gateway call counts as failed
            reference_attempts: Tries before giving up on reference collisions
            reference_prefix: Payment reference prefix
        """
        self._uow_factory = uow_factory
        self._registry = registry
        self._orders = order_service
        self._locks = locks
        self._event_bus = event_bus
        self._gateway_timeout = gateway_timeout
        self._reference_attempts = max(1, reference_attempts)
        self._reference_prefix = reference_prefix
        self._reconciler = WebhookReconciler(
            uow_factory=uow_factory,
            registry=registry,
            order_service=order_service,
            locks=locks,
            event_bus=event_bus,
        )

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create_payment(self, user_id: str, request: CreatePaymentRequest) -> PaymentDTO:
        """
        Start a payment for an order and open a hosted checkout.

        Args:
            user_id: Acting user, must own the order
            request: CreatePaymentRequest DTO

        Returns:
            PaymentDTO in PENDING with checkout_url and external_id set

        Raises:
            NotFoundError: If the order does not exist
            AuthorizationError: If the user does not own the order
            InvalidStateError: If the order is already terminal
            ConflictError: If the order already has a successful payment
            UnsupportedProviderError: If the provider is not registered
            GatewayError: If the checkout could not be created
        """
        gateway = self._registry.get(request.provider)

        async with self._locks.hold(order_lock_key(request.order_id)):
            async with self._uow_factory() as uow:
                order = await uow.orders.get(request.order_id)
            if not order.is_owned_by(user_id):
                raise AuthorizationError("You can only pay for your own orders")
            if order.status.is_terminal:
                raise InvalidStateError(
                    f"Order {order.order_number} is {order.status.value} and cannot be paid"
                )

            payment = await self._persist_new_payment(user_id, order, gateway, request)

            try:
                session = await self._call_gateway(
                    gateway, "checkout", gateway.create_checkout(payment, order)
                )
            except GatewayError as e:
                await self._record_failure(payment, "checkout", e)
                raise

            async with self._uow_factory() as uow:
                payment.attach_checkout(session.checkout_url, session.external_id)
                await uow.payments.update(payment)
                order = await self._orders.update_status(
                    order.id,
                    OrderStatus.AWAITING_PAYMENT,
                    uow=uow,
                    reason=f"payment {payment.payment_reference} created",
                )
                await uow.commit()

        logger.info(
            f"Payment {payment.payment_reference} created for order {order.order_number} "
            f"via {payment.provider} ({payment.amount} {payment.currency})"
        )
        await self._publish(payment, order)
        return PaymentDTO.from_entity(payment)

    async def _persist_new_payment(
        self,
        user_id: str,
        order: Order,
        gateway: IPaymentGateway,
        request: CreatePaymentRequest,
    ) -> Payment:
        for attempt in range(1, self._reference_attempts + 1):
            payment = Payment.create(
                order_id=order.id,
                user_id=user_id,
                provider=request.provider.strip(),
                amount=request.amount,
                payment_reference=PaymentReference.generate(self._reference_prefix),
                currency=request.currency or order.currency,
                success_url=request.success_url,
                failure_url=request.failure_url,
                cancel_url=request.cancel_url,
                metadata=request.metadata,
            )
            try:
                async with self._uow_factory() as uow:
                    if await uow.payments.has_successful_payment(order.id):
                        raise ConflictError(
                            f"Order {order.order_number} already has a successful payment"
                        )
                    await uow.payments.add(payment)
                    await uow.commit()
            except DuplicateKeyError:
                logger.warning(
                    f"Payment reference collision on {payment.payment_reference} "
                    f"(attempt {attempt}/{self._reference_attempts})"
                )
                continue
            return payment

        raise ConflictError(
            f"Could not allocate a unique payment reference after {self._reference_attempts} attempts"
        )

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    async def authorize_payment(self, payment_id: str) -> PaymentDTO:
        """
        Confirm funds are reserved. Requires PENDING.

        Raises:
            NotFoundError, InvalidStateError, ConflictError, GatewayError
        """
        def check(payment: Payment) -> None:
            payment.ensure_status(PaymentStatus.PENDING, action="authorize")

        return await self._transition(
            payment_id,
            operation="authorize",
            check=check,
            call=lambda gateway, payment: gateway.authorize(payment),
            target=lambda payment: PaymentStatus.AUTHORIZED,
        )

    async def capture_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> PaymentDTO:
        """
        Collect funds. Requires AUTHORIZED, or PENDING for providers that
        capture without a separate authorize step.

        Raises:
            NotFoundError, InvalidStateError, ValidationError, ConflictError, GatewayError
        """
        def check(payment: Payment) -> None:
            payment.ensure_status(PaymentStatus.AUTHORIZED, PaymentStatus.PENDING, action="capture")
            self._check_amount(payment, amount, "Capture")

        return await self._transition(
            payment_id,
            operation="capture",
            check=check,
            call=lambda gateway, payment: gateway.capture(payment, amount),
            target=lambda payment: PaymentStatus.CAPTURED,
        )

    async def cancel_payment(self, payment_id: str) -> PaymentDTO:
        """
        Void a payment that has not been captured.

        The order is only cancelled with it when no other attempt on the
        order has moved funds or is still pending.

        Raises:
            NotFoundError, InvalidStateError, GatewayError
        """
        def check(payment: Payment) -> None:
            if payment.status == PaymentStatus.CAPTURED:
                raise InvalidStateError(
                    f"Payment {payment.payment_reference} is captured; refund it instead"
                )
            payment.ensure_status(PaymentStatus.PENDING, PaymentStatus.AUTHORIZED, action="cancel")

        return await self._transition(
            payment_id,
            operation="cancel",
            check=check,
            call=lambda gateway, payment: gateway.cancel(payment),
            target=lambda payment: PaymentStatus.CANCELLED,
        )

    async def refund_payment(
        self,
        payment_id: str,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
    ) -> PaymentDTO:
        """
        Return funds on a captured payment.

        A refund below the payment amount ends PARTIALLY_REFUNDED; an
        omitted amount is a full refund.

        Raises:
            NotFoundError, InvalidStateError, ValidationError, GatewayError
        """
        def check(payment: Payment) -> None:
            payment.ensure_status(PaymentStatus.CAPTURED, action="refund")
            self._check_amount(payment, amount, "Refund")

        return await self._transition(
            payment_id,
            operation="refund",
            check=check,
            call=lambda gateway, payment: gateway.refund(payment, amount, reason),
            target=lambda payment: payment.refund_status_for(amount),
        )

    async def _transition(
        self,
        payment_id: str,
        operation: str,
        check: Callable[[Payment], None],
        call: GatewayCall,
        target: Callable[[Payment], PaymentStatus],
    ) -> PaymentDTO:
        async with self._uow_factory() as uow:
            order_id = (await uow.payments.get(payment_id)).order_id

        async with self._locks.hold(order_lock_key(order_id)):
            async with self._uow_factory() as uow:
                payment = await uow.payments.get(payment_id)
                rival = await uow.payments.find_superseding_payment(payment)
                others_pending = await uow.payments.has_other_pending_payment(payment)
            check(payment)
            new_status = target(payment)
            if rival is not None and new_status.has_moved_funds:
                raise ConflictError(
                    f"Cannot {operation} payment {payment.payment_reference}: order already "
                    f"settled by payment {rival.payment_reference} ({rival.status.value})"
                )
            gateway = self._registry.get(payment.provider)

            try:
                await self._call_gateway(gateway, operation, call(gateway, payment))
            except GatewayError as e:
                await self._record_failure(payment, operation, e)
                raise

            previous_status = payment.status
            async with self._uow_factory() as uow:
                payment.transition_to(new_status)
                await uow.payments.update(payment)
                # Only the live attempt on an order moves the order
                drives_order = rival is None and not (new_status.is_sink and others_pending)
                order = None
                if drives_order and payment.mirrored_order_status is not None:
                    order = await self._orders.update_status(
                        payment.order_id,
                        payment.mirrored_order_status,
                        uow=uow,
                        reason=f"payment {payment.payment_reference} {operation}",
                    )
                await uow.commit()

        logger.info(
            f"Payment {payment.payment_reference} {operation}: "
            f"{previous_status.value} -> {new_status.value}"
        )
        await self._publish(payment, order)
        return PaymentDTO.from_entity(payment)

    @staticmethod
    def _check_amount(payment: Payment, amount: Optional[Decimal], label: str) -> None:
        if amount is None:
            return
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValidationError(f"{label} amount must be greater than zero")
        if amount > payment.amount:
            raise ValidationError(
                f"{label} amount {amount} exceeds payment amount {payment.amount}"
            )

    async def _call_gateway(self, gateway: IPaymentGateway, operation: str, call: Awaitable[Any]) -> Any:
        """Run one gateway call with the configured timeout, normalising failures to GatewayError."""
        try:
            return await asyncio.wait_for(call, timeout=self._gateway_timeout)
        except GatewayError:
            raise
        except asyncio.TimeoutError:
            raise GatewayTimeoutError(
                f"{gateway.name} {operation} timed out after {self._gateway_timeout}s",
                provider=gateway.name,
            )
        except Exception as e:
            raise GatewayError(f"{gateway.name} {operation} failed: {e}", provider=gateway.name) from e

    async def _record_failure(self, payment: Payment, operation: str, error: GatewayError) -> None:
        """Persist a failed gateway call on the payment, then hand control back for re-raise."""
        logger.error(f"Payment {payment.payment_reference} {operation} failed: {error}")
        async with self._uow_factory() as uow:
            current = await uow.payments.get(payment.id)
            current.record_failure(
                operation,
                str(error),
                mark_failed=current.status.can_advance_to(PaymentStatus.FAILED),
            )
            await uow.payments.update(current)
            await uow.commit()
        await self._publish(current)

    # =========================================================================
    # WEBHOOKS
    # =========================================================================

    async def handle_webhook(
        self,
        provider: str,
        token: str,
        payload: Mapping[str, Any],
    ) -> WebhookResult:
        """Apply an inbound gateway notification. See WebhookReconciler.reconcile."""
        return await self._reconciler.reconcile(provider, token, payload)

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_payment(self, payment_id: str) -> PaymentDTO:
        async with self._uow_factory() as uow:
            return PaymentDTO.from_entity(await uow.payments.get(payment_id))

    async def get_payment_by_reference(self, payment_reference: str) -> PaymentDTO:
        async with self._uow_factory() as uow:
            return PaymentDTO.from_entity(await uow.payments.get_by_reference(payment_reference))

    async def list_payments(self, limit: int = 100, offset: int = 0) -> List[PaymentDTO]:
        async with self._uow_factory() as uow:
            payments = await uow.payments.list(limit=limit, offset=offset)
        return [PaymentDTO.from_entity(p) for p in payments]

    async def list_user_payments(self, user_id: str) -> List[PaymentDTO]:
        async with self._uow_factory() as uow:
            payments = await uow.payments.list_by_user(user_id)
        return [PaymentDTO.from_entity(p) for p in payments]

    async def list_order_payments(self, order_id: str) -> List[PaymentDTO]:
        """List payment attempts for an order (NotFoundError if the order is absent)."""
        async with self._uow_factory() as uow:
            await uow.orders.get(order_id)
            payments = await uow.payments.list_by_order(order_id)
        return [PaymentDTO.from_entity(p) for p in payments]

    def supported_providers(self) -> SupportedProvidersDTO:
        return SupportedProvidersDTO(methods=self._registry.supported_providers())

    async def _publish(self, payment: Payment, order: Optional[Order] = None) -> None:
        events = payment.get_domain_events()
        payment.clear_domain_events()
        if self._event_bus and events:
            await self._event_bus.publish_all(events)
        if order is not None:
            await self._orders.publish_events(order)
