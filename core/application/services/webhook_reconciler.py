"""
Webhook reconciliation.

Merges gateway-pushed status notifications into local Payment/Order state.
Delivery is at-least-once and may be reordered, so a notification is only
applied when it moves the payment forward on the progress order defined in
``PaymentStatus``; everything else is acknowledged and ignored.
"""
import logging
from typing import Any, Callable, Dict, Mapping, Optional, TYPE_CHECKING

from core.application.dtos.payment_dto import WebhookOutcome, WebhookResult
from core.application.interfaces import IPaymentGateway
from core.application.locks import KeyedLock, order_lock_key
from core.application.services.gateway_registry import PaymentGatewayRegistry
from core.domain.entities import Payment
from core.domain.enums import PaymentStatus
from core.domain.event_bus import EventBus
from core.domain.exceptions import AuthenticityError, GatewayError
from core.domain.repositories import UnitOfWork

if TYPE_CHECKING:
    from core.application.services.order_service import OrderApplicationService

logger = logging.getLogger(__name__)


# Provider status -> local payment status
WEBHOOK_STATUS_MAP: Dict[str, PaymentStatus] = {
    "approved": PaymentStatus.AUTHORIZED,
    "authorised": PaymentStatus.AUTHORIZED,
    "authorized": PaymentStatus.AUTHORIZED,
    "captured": PaymentStatus.CAPTURED,
    "fully_captured": PaymentStatus.CAPTURED,
    "declined": PaymentStatus.FAILED,
    "expired": PaymentStatus.CANCELLED,
    "canceled": PaymentStatus.CANCELLED,
    "cancelled": PaymentStatus.CANCELLED,
    "refunded": PaymentStatus.REFUNDED,
    "fully_refunded": PaymentStatus.REFUNDED,
    "partially_refunded": PaymentStatus.PARTIALLY_REFUNDED,
}

# Unmapped but worth an operator's attention
ALERT_STATUSES = frozenset({"disputed", "dispute", "chargeback", "charged_back"})


def map_provider_status(status: str) -> Optional[PaymentStatus]:
    return WEBHOOK_STATUS_MAP.get((status or "").strip().lower())


class WebhookReconciler:
    """
    Applies verified gateway notifications idempotently.

    Runs under the same per-order lock as the synchronous payment
    operations, so a webhook and an API capture never both win.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        registry: PaymentGatewayRegistry,
        order_service: "OrderApplicationService",
        locks: KeyedLock,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._registry = registry
        self._orders = order_service
        self._locks = locks
        self._event_bus = event_bus

    async def reconcile(
        self,
        provider: str,
        token: str,
        payload: Mapping[str, Any],
    ) -> WebhookResult:
        """
        Reconcile one notification.

        Args:
            provider: Provider the notification claims to come from
            token: Authenticity token sent with the notification
            payload: Provider body

        Returns:
            WebhookResult, APPLIED or IGNORED

        Raises:
            UnsupportedProviderError: If no gateway is registered for provider
            AuthenticityError: If the token is rejected (nothing is touched)
            ValidationError: If the payload is malformed
        """
        gateway = self._registry.get(provider)

        if not await self._is_authentic(gateway, token):
            logger.warning(f"Rejected {gateway.name} webhook: invalid token")
            raise AuthenticityError(f"Invalid {gateway.name} webhook token")

        notification = gateway.parse_notification(payload)
        external_id = notification.external_id

        async with self._uow_factory() as uow:
            payment = await uow.payments.find_by_external_id(external_id)
        if payment is None:
            logger.info(f"Ignoring {gateway.name} webhook for unknown payment {external_id}")
            return WebhookResult(outcome=WebhookOutcome.IGNORED, reason="unknown_payment")

        new_status = map_provider_status(notification.status)
        if new_status is None:
            if notification.status.strip().lower() in ALERT_STATUSES:
                logger.warning(
                    f"Payment {payment.payment_reference} reported '{notification.status}' "
                    f"by {gateway.name}; manual review required"
                )
            else:
                logger.info(
                    f"Ignoring unmapped {gateway.name} status '{notification.status}' "
                    f"for payment {payment.payment_reference}"
                )
            return WebhookResult(
                outcome=WebhookOutcome.IGNORED,
                reason="unmapped_status",
                payment_id=payment.id,
                status=payment.status,
            )

        async with self._locks.hold(order_lock_key(payment.order_id)):
            async with self._uow_factory() as uow:
                payment = await uow.payments.get(payment.id)
                previous_status = payment.status

                if not previous_status.can_advance_to(new_status):
                    reason = "duplicate" if previous_status == new_status else "stale"
                    logger.info(
                        f"Ignoring {reason} webhook for payment {payment.payment_reference}: "
                        f"{previous_status.value} -> {new_status.value}"
                    )
                    return WebhookResult(
                        outcome=WebhookOutcome.IGNORED,
                        reason=reason,
                        payment_id=payment.id,
                        previous_status=previous_status,
                        status=previous_status,
                    )

                rival = await uow.payments.find_superseding_payment(payment)
                if rival is not None and new_status.has_moved_funds:
                    logger.warning(
                        f"Ignoring {gateway.name} '{notification.status}' for payment "
                        f"{payment.payment_reference}: order already settled by "
                        f"{rival.payment_reference} ({rival.status.value})"
                    )
                    return WebhookResult(
                        outcome=WebhookOutcome.IGNORED,
                        reason="superseded",
                        payment_id=payment.id,
                        previous_status=previous_status,
                        status=previous_status,
                    )

                drives_order = rival is None and not (
                    new_status.is_sink and await uow.payments.has_other_pending_payment(payment)
                )
                payment.transition_to(new_status, source="webhook")
                await uow.payments.update(payment)

                # Only the live attempt on an order moves the order
                order = None
                if drives_order and payment.mirrored_order_status is not None:
                    order = await self._orders.update_status(
                        payment.order_id,
                        payment.mirrored_order_status,
                        uow=uow,
                        reason=f"{gateway.name} webhook: {notification.status}",
                    )
                await uow.commit()

        logger.info(
            f"Applied {gateway.name} webhook to payment {payment.payment_reference}: "
            f"{previous_status.value} -> {new_status.value}"
        )
        await self._publish(payment)
        if order is not None:
            await self._orders.publish_events(order)

        return WebhookResult(
            outcome=WebhookOutcome.APPLIED,
            payment_id=payment.id,
            previous_status=previous_status,
            status=new_status,
        )

    async def _is_authentic(self, gateway: IPaymentGateway, token: str) -> bool:
        if not token:
            return False
        try:
            return bool(await gateway.verify_webhook(token))
        except GatewayError as e:
            logger.warning(f"{gateway.name} webhook verification failed: {e}")
            return False

    async def _publish(self, payment: Payment) -> None:
        events = payment.get_domain_events()
        payment.clear_domain_events()
        if self._event_bus and events:
            await self._event_bus.publish_all(events)
