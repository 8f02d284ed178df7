"""Application service for Order operations."""

import logging
from typing import Callable, List, Optional

from core.application.dtos.order_dto import (
    CreateOrderRequest,
    OrderDTO,
    OrderListDTO,
    UpdateOrderRequest,
)
from core.application.locks import KeyedLock, order_lock_key
from core.domain.entities import Order
from core.domain.enums import OrderStatus
from core.domain.event_bus import EventBus
from core.domain.exceptions import AuthorizationError, ConflictError, DuplicateKeyError
from core.domain.repositories import UnitOfWork
from core.domain.value_objects import DEFAULT_CURRENCY, OrderNumber

logger = logging.getLogger(__name__)


class OrderApplicationService:
    """
    Application service owning the Order lifecycle.

    Responsibilities:
    - Create orders with computed totals and a unique order number
    - Serve side-effect-free reads
    - Apply status changes on behalf of the payment flow
    - Refuse deletion while a successful payment references the order
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        locks: Optional[KeyedLock] = None,
        event_bus: Optional[EventBus] = None,
        number_attempts: int = 3,
        number_prefix: str = OrderNumber.default_prefix,
        default_currency: str = DEFAULT_CURRENCY,
    ) -> None:
        """Initialize order application service.

        Args:
            uow_factory: Creates a fresh UnitOfWork per operation
            locks: Per-order locks shared with the payment service
            event_bus: Receives domain events after commit
            number_attempts: Tries before giving up on order number collisions
            number_prefix: Order number prefix
            default_currency: Currency used when the request has none
        """
        self._uow_factory = uow_factory
        self._locks = locks or KeyedLock()
        self._event_bus = event_bus
        self._number_attempts = max(1, number_attempts)
        self._number_prefix = number_prefix
        self._default_currency = default_currency

    async def create_order(self, user_id: str, request: CreateOrderRequest) -> OrderDTO:
        """Create a new order in PENDING.

        Args:
            user_id: Owning user
            request: CreateOrderRequest DTO

        Returns:
            OrderDTO with created order details

        Raises:
            ValidationError: If the order has no items or inconsistent amounts
            ConflictError: If no unique order number could be allocated
        """
        for attempt in range(1, self._number_attempts + 1):
            order = Order.create(
                user_id=user_id,
                items=[item.to_entity() for item in request.items],
                order_number=OrderNumber.generate(self._number_prefix),
                discount=request.discount,
                tax=request.tax,
                shipping=request.shipping,
                currency=request.currency or self._default_currency,
                discount_code=request.discount_code,
                notes=request.notes,
                shipping_address=request.shipping_address,
                billing_address=request.billing_address,
            )
            try:
                async with self._uow_factory() as uow:
                    await uow.orders.add(order)
                    await uow.commit()
            except DuplicateKeyError:
                logger.warning(
                    f"Order number collision on {order.order_number} "
                    f"(attempt {attempt}/{self._number_attempts})"
                )
                continue

            logger.info(
                f"Order {order.order_number} created for user {user_id} "
                f"(total: {order.total} {order.currency}, items: {len(order.items)})"
            )
            await self._publish(order)
            return OrderDTO.from_entity(order)

        raise ConflictError(
            f"Could not allocate a unique order number after {self._number_attempts} attempts"
        )

    async def get_order(self, order_id: str) -> OrderDTO:
        """Get order by ID.

        Raises:
            NotFoundError: If the order does not exist
        """
        async with self._uow_factory() as uow:
            order = await uow.orders.get(order_id)
            return OrderDTO.from_entity(order)

    async def get_order_by_number(self, order_number: str) -> OrderDTO:
        """Get order by order number.

        Raises:
            NotFoundError: If the order does not exist
        """
        async with self._uow_factory() as uow:
            order = await uow.orders.get_by_number(order_number)
            return OrderDTO.from_entity(order)

    async def list_orders(self, limit: int = 100, offset: int = 0) -> OrderListDTO:
        """List orders with pagination."""
        async with self._uow_factory() as uow:
            orders = await uow.orders.list(limit=limit, offset=offset)
        return self._to_list(orders, limit, offset)

    async def list_user_orders(self, user_id: str, limit: int = 100, offset: int = 0) -> OrderListDTO:
        """List orders owned by ``user_id``."""
        async with self._uow_factory() as uow:
            orders = await uow.orders.list_by_user(user_id, limit=limit, offset=offset)
        return self._to_list(orders, limit, offset)

    async def update_order(
        self,
        order_id: str,
        request: UpdateOrderRequest,
        user_id: Optional[str] = None,
    ) -> OrderDTO:
        """Update descriptive fields of an order.

        Raises:
            NotFoundError: If the order does not exist
            AuthorizationError: If ``user_id`` is given and does not own the order
        """
        async with self._locks.hold(order_lock_key(order_id)):
            async with self._uow_factory() as uow:
                order = await uow.orders.get(order_id)
                if user_id is not None and not order.is_owned_by(user_id):
                    raise AuthorizationError("You can only update your own orders")
                changed = order.update_details(**request.model_dump())
                if changed:
                    await uow.orders.update(order)
                    await uow.commit()
                    logger.info(f"Order {order.order_number} updated: {', '.join(changed)}")
        await self._publish(order)
        return OrderDTO.from_entity(order)

    async def update_status(
        self,
        order_id: str,
        new_status: OrderStatus,
        uow: Optional[UnitOfWork] = None,
        reason: Optional[str] = None,
    ) -> Order:
        """Overwrite the order status as a side effect of a payment transition.

        When ``uow`` is given the write joins the caller's unit of work and
        the caller commits; the caller is also responsible for holding the
        order lock and for publishing the order's events.

        Raises:
            NotFoundError: If the order does not exist
        """
        if uow is not None:
            order = await uow.orders.get(order_id)
            if order.change_status(new_status, reason):
                await uow.orders.update(order)
            return order

        async with self._locks.hold(order_lock_key(order_id)):
            async with self._uow_factory() as own_uow:
                order = await own_uow.orders.get(order_id)
                if order.change_status(new_status, reason):
                    await own_uow.orders.update(order)
                    await own_uow.commit()
        await self._publish(order)
        return order

    async def delete_order(self, order_id: str, user_id: Optional[str] = None) -> None:
        """Delete an order that has no successful payment.

        Args:
            order_id: Order to delete
            user_id: When given, must be the order owner

        Raises:
            NotFoundError: If the order does not exist
            AuthorizationError: If ``user_id`` does not own the order
            ConflictError: If an AUTHORIZED or CAPTURED payment references it
        """
        async with self._locks.hold(order_lock_key(order_id)):
            async with self._uow_factory() as uow:
                order = await uow.orders.get(order_id)
                if user_id is not None and not order.is_owned_by(user_id):
                    raise AuthorizationError("You can only delete your own orders")
                if await uow.payments.has_successful_payment(order_id):
                    raise ConflictError(
                        f"Order {order.order_number} has a successful payment and cannot be deleted"
                    )
                await uow.orders.delete(order_id)
                await uow.commit()
        order.mark_deleted()
        logger.info(f"Order {order.order_number} deleted")
        await self._publish(order)

    async def publish_events(self, order: Order) -> None:
        """Publish events collected by an order mutated inside a caller's unit of work."""
        await self._publish(order)

    async def _publish(self, order: Order) -> None:
        events = order.get_domain_events()
        order.clear_domain_events()
        if self._event_bus and events:
            await self._event_bus.publish_all(events)

    @staticmethod
    def _to_list(orders: List[Order], limit: int, offset: int) -> OrderListDTO:
        return OrderListDTO(
            orders=[OrderDTO.from_entity(order) for order in orders],
            total=len(orders),
            limit=limit,
            offset=offset,
        )
